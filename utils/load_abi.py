import json
from pathlib import Path

ABI_DIR = Path(__file__).resolve().parent.parent / "abis"

def _load_abi(name: str) -> list:
    path = ABI_DIR / name
    if not path.is_file():
        raise FileNotFoundError(f"ABI no encontrado: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

def load_erc20_abi() -> list:
    # balanceOf, transfer, approve, decimals
    return _load_abi("erc20_abi.json")

def load_treasury_abi() -> list:
    return _load_abi("arsv_treasury_abi.json")
