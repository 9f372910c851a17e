from x402_mint.web.app import create_app

__all__ = ["create_app"]
