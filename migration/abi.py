# Minimal ABI fragments for the escrow contracts, used when the block
# explorer cannot provide the verified ABI.

VESTING_ENTRY_CREATED = "VestingEntryCreated"


def _view(name: str, output: str = "uint256", inputs: tuple[str, ...] = ("address",)) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        "outputs": [{"name": "", "type": output}],
    }


LEGACY_ESCROW_ABI: list[dict] = [
    _view("totalEscrowedAccountBalance"),
    _view("totalVestedAccountBalance"),
    _view("checkAccountSchedule", output="uint256[520]"),
    {
        "type": "event",
        "name": VESTING_ENTRY_CREATED,
        "anonymous": False,
        "inputs": [
            {"name": "beneficiary", "type": "address", "indexed": True},
            {"name": "time", "type": "uint256", "indexed": False},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]

SUCCESSOR_ESCROW_ABI: list[dict] = [
    _view("totalBalancePendingMigration"),
    _view("totalEscrowedAccountBalance"),
    _view("numVestingEntries"),
    {
        "type": "function",
        "name": "migrateAccountEscrowBalances",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "accounts", "type": "address[]"},
            {"name": "escrowBalances", "type": "uint256[]"},
            {"name": "vestedBalances", "type": "uint256[]"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "importVestingSchedule",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "accounts", "type": "address[]"},
            {"name": "vestingTimestamps", "type": "uint256[]"},
            {"name": "escrowAmounts", "type": "uint256[]"},
        ],
        "outputs": [],
    },
]


def required_names(abi: list[dict]) -> set[str]:
    return {item["name"] for item in abi if "name" in item}
