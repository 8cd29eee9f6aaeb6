# Recommendation intents (one per engine operation)
INTENT_SIMILAR = "similar"            # Substitutable products for a reference product
INTENT_SEARCH = "search"              # Raw semantic search
INTENT_PERSONALIZED = "personalized"  # Search on enriched user preferences
INTENT_HISTORY = "history"            # Seeded by recently viewed products
INTENT_COMPLEMENTARY = "complementary"  # Used-together products
INTENT_TRENDING = "trending"          # Top-rated catalog listing (no vectors)
INTENT_DIVERSE = "diverse"            # Round-robin across categories
INTENT_BUDGET = "budget"              # Similar but cheaper
INTENT_PREMIUM = "premium"            # Similar but pricier
INTENT_CATEGORY = "category"          # Category + user context

# List of all supported intents (useful for validation)
ALL_INTENTS = {
    INTENT_SIMILAR, INTENT_SEARCH, INTENT_PERSONALIZED, INTENT_HISTORY, INTENT_COMPLEMENTARY,
    INTENT_TRENDING, INTENT_DIVERSE, INTENT_BUDGET, INTENT_PREMIUM, INTENT_CATEGORY,
}

# Extra hit requested when the reference product may show up in its own results
SELF_HEADROOM = 1

# History-based recommendations
HISTORY_SEED_LIMIT = 5   # most recent viewed ids used as seeds
HISTORY_PER_SEED = 5     # similar items fetched per seed

# Over-fetch factor so diversification has enough candidates
DIVERSITY_OVERFETCH = 3

# Headroom factor for budget/premium alternatives (similar pool = limit * factor)
ALTERNATIVES_HEADROOM = 2

# Bucket for hits whose metadata carries no category
UNCATEGORIZED = "UNCATEGORIZED"
