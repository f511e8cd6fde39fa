"""Numeric constants shared by the embedding pipeline.

Imported from both utils and services; must not import other embedpipe modules.
"""

# Lower bound on a vector norm before dividing by it
NORM_EPS: float = 1e-12

# Added to the sample variance when rescaling truncated nested embeddings
LAYER_NORM_EPS: float = 1e-5

# Lower bound on the number of unmasked tokens in mean pooling
MASK_SUM_EPS: float = 1e-9

# Fill value for padded positions so they never win max pooling
MASK_NEG_INF: float = -1e9

# MD5 hash of "nomic empty"; embedded in place of texts that tokenize to nothing
EMPTY_PLACEHOLDER: str = "24df574ea1c998de59d5be15e769658e"
