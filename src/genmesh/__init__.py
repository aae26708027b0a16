"""genmesh - prompt/image to 3D asset generation through hosted inference models."""

__version__ = "0.1.0"
