"""Allow running as ``python -m layerstack``."""

import layerstack.cli as cli

if __name__ == "__main__":
    cli.main()
