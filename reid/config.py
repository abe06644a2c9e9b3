# Defaults shared by the gallery loader, matcher and CLI.

# Minimum cosine similarity for a query to be assigned a known identity.
DEFAULT_THRESHOLD = 0.7

# Added to the cosine denominator so zero vectors never divide by zero.
SIMILARITY_EPS = 1e-6

# Reserved id/label for queries below the threshold.
UNKNOWN_ID = -1
UNKNOWN_LABEL = "Unknown"

# Feature files are raw little-endian float32 without a header.
FEATURE_DTYPE = "<f4"
