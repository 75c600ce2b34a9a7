"""
imfx: image composition from one-line expressions.

An expression is compiled into a flat postfix word buffer and then interpreted
against a list of images.
"""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("imfx")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
