"""Rule-based topic inference: normalize, tokenize, score, resolve, rebalance."""
