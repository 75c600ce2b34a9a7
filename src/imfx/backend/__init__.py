"""
Image backend. Pixel-level operations on numpy arrays of shape
``(height, width[, channels])``; the language layer never touches pixels itself.
"""
