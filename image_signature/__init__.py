"""
image_signature — Compact image descriptors and histogram distances.

Turns an RGBA pixel buffer into color histograms, edge-orientation
histograms, dominant colors and moment invariants, and compares the
histograms of two images with normalized distances.

Modules:
    pixels        PixelBuffer input type, min/max and stretch helpers
    parallel      Row-band fork-join reduction
    convolution   Kernel, convolve, subtract
    filters       Sobel, Gaussian and Difference-of-Gaussian filters
    histograms    Color and edge-orientation histograms
    quantization  Best colors and RGB-grid best shades
    moments       Raw/central moments and moment invariants
    distances     City-block, Euclidean, Bhattacharyya and MDPA distances
    colors        Color packing, color spaces and color distances
    descriptor    ImageData record and extraction pipeline
    numeric       Safe division and clamping
    config        Environment-driven defaults
    errors        Error types
"""

__version__ = "1.0.0"
