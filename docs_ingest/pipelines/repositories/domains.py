"""Built-in domain repository lists."""

from typing import List

from .models import DomainRepositoryConfig, RepositoryConfig


def _cardano(owner: str, name: str, importance: int, is_official: bool, tags: List[str]):
    return RepositoryConfig(
        owner=owner,
        name=name,
        domain="cardano",
        importance=importance,
        is_official=is_official,
        tags=tags,
    )


# Official repositories from IOG and the Cardano Foundation plus widely used community SDKs
CARDANO_REPOSITORIES = DomainRepositoryConfig(
    domain="cardano",
    repositories=[
        _cardano("input-output-hk", "cardano-node", 10, True, ["node", "core", "consensus", "networking"]),
        _cardano("input-output-hk", "cardano-ledger", 10, True, ["ledger", "core", "consensus", "plutus"]),
        _cardano("input-output-hk", "ouroboros-network", 9, True, ["networking", "consensus", "core"]),
        _cardano("input-output-hk", "cardano-wallet", 9, True, ["wallet", "api"]),
        _cardano("cardano-foundation", "CIPs", 9, True, ["standards", "improvement-proposals", "documentation"]),
        _cardano("cardano-foundation", "cardano-token-registry", 8, True, ["token-registry", "metadata"]),
        _cardano("input-output-hk", "plutus", 9, True, ["smart-contracts", "plutus"]),
        _cardano("MeshJS", "mesh", 8, False, ["development", "javascript", "sdk"]),
        _cardano("bloxbean", "cardano-client-lib", 7, False, ["java", "sdk"]),
        _cardano("Emurgo", "cardano-serialization-lib", 8, True, ["serialization", "wasm", "rust"]),
        _cardano("cardano-foundation", "cardano-explorer-app", 7, True, ["explorer", "frontend"]),
        _cardano("blockfrost", "blockfrost-backend-ryo", 8, False, ["api", "backend", "indexer"]),
        _cardano("input-output-hk", "cardano-documentation", 8, True, ["documentation"]),
        _cardano("cardano-foundation", "developer-portal", 8, True, ["documentation", "developer"]),
    ],
)


def default_domains() -> List[DomainRepositoryConfig]:
    """Fresh copies of every built-in domain list."""
    return [CARDANO_REPOSITORIES.model_copy(deep=True)]
