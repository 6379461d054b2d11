"""
Runtime defaults for descriptor extraction.

Every value can be overridden through the environment or passed
explicitly to the function that uses it. Nothing here is mutated at
runtime; the constants are read once at import.
"""

import os

# Sobel magnitude at or above which a channel counts as an edge.
SOBEL_THRESHOLD = float(os.environ.get("IMAGE_SIG_SOBEL_THRESHOLD", "0.25"))

# Number of best colors / best shades kept in an ImageData record.
TOP_K = int(os.environ.get("IMAGE_SIG_TOP_K", "5"))

# Smallest row band handed to a worker thread.
MIN_BATCH_SIZE = int(os.environ.get("IMAGE_SIG_MIN_BATCH", "8"))

# Worker threads for fork-join passes. 0 means one per CPU.
WORKERS = int(os.environ.get("IMAGE_SIG_WORKERS", "0"))

# Default histogram distance model name (see distances.HistogramDistance).
DISTANCE_MODEL = os.environ.get("IMAGE_SIG_DISTANCE", "city_block")

# Denominators at or below this magnitude make safe_divide return 0.
SAFE_DIVIDE_EPSILON = 0.0
