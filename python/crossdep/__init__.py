"""crossdep - cross-project dependency resolution for model testing."""

__version__ = "1.0.0"
