"""Allow ``python -m zapsign_mcp``."""

from zapsign_mcp.main import cli

if __name__ == "__main__":
    cli()
