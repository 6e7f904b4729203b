"""embargo - an opinionated build orchestrator for small C/C++ projects."""

__version__ = "0.3.0"

PROJECT_CONFIG_FILE = "Embargo.toml"
BUILD_DIR_NAME = "build"
