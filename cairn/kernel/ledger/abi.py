"""
Contract ABI fragments for the registry, the hypercert token and the funding
ERC-20. Only the functions and events the client calls are listed.
"""

from typing import Any, Dict, List, Sequence, Tuple

Param = Tuple[str, str]


def _params(params: Sequence[Param]) -> List[Dict[str, Any]]:
    return [{"name": name, "type": type_} for name, type_ in params]


def _fn(
    name: str,
    inputs: Sequence[Param] = (),
    outputs: Sequence[Param] = (),
    mutability: str = "nonpayable",
) -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
        "stateMutability": mutability,
    }


def _view(name: str, inputs: Sequence[Param], outputs: Sequence[Param]) -> Dict[str, Any]:
    return _fn(name, inputs, outputs, mutability="view")


_PROJECT_TUPLE = {
    "name": "",
    "type": "tuple[]",
    "components": _params([
        ("creator", "address"),
        ("typeID", "uint256"),
        ("tokenIDs", "uint256[]"),
        ("projectURI", "string"),
        ("outputsURI", "string"),
        ("proofs", "string[]"),
        ("impact", "uint8"),
        ("funder", "address"),
        ("fundingGoal", "uint256"),
    ]),
}

_PROOF_TUPLE = {
    "name": "",
    "type": "tuple",
    "components": _params([
        ("recorder", "address"),
        ("timestamp", "uint256"),
        ("dispute", "bool"),
        ("disputeURI", "string"),
    ]),
}

REGISTRY_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "getAllProjects",
        "inputs": _params([("start", "uint256"), ("count", "uint256")]),
        "outputs": [_PROJECT_TUPLE],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "getProof",
        "inputs": _params([("proofCID", "string")]),
        "outputs": [_PROOF_TUPLE],
        "stateMutability": "view",
    },
    _view("isProofValid", [("proofCID", "string")], [("", "bool")]),
    _view("getUserAvailablePoRCount", [("user", "address")], [("", "uint256")]),
    _fn("registerProject", [("projectURI", "string"), ("tokenID", "uint256"), ("unitPrice", "uint256")]),
    _fn("recordOutputs", [("projectURI", "string"), ("outputsURI", "string")]),
    _fn("recordProof", [("projectCID", "string"), ("proofCID", "string")]),
    _fn("disputeProof", [("proofCID", "string"), ("disputeCID", "string")]),
    _fn("fundProject", [("amount", "uint256"), ("projectId", "string")]),
    _fn("setProjectImpact", [("projectId", "string"), ("impact", "uint8")]),
]

HYPERCERT_ABI: List[Dict[str, Any]] = [
    _view("ownerOf", [("tokenID", "uint256")], [("", "address")]),
    _view("unitsOf", [("tokenID", "uint256")], [("", "uint256")]),
    _fn("mintClaim", [
        ("account", "address"),
        ("units", "uint256"),
        ("uri", "string"),
        ("restrictions", "uint8"),
    ]),
    _fn("setApprovalForAll", [("operator", "address"), ("approved", "bool")]),
    {
        "type": "event",
        "name": "ClaimStored",
        "anonymous": False,
        "inputs": [
            {"name": "claimID", "type": "uint256", "indexed": True},
            {"name": "uri", "type": "string", "indexed": False},
            {"name": "units", "type": "uint256", "indexed": False},
        ],
    },
]

ERC20_ABI: List[Dict[str, Any]] = [
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
]
