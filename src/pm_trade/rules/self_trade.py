"""Self-trade detection: a seller may never buy from their own listing."""


def is_self_trade(buyer_id: str, seller_id: str) -> bool:
    """User ids compare exactly: "Alice" and "alice" are two accounts."""
    return buyer_id == seller_id
