"""API package.

This exposes router modules to simplify test imports like:
	from vegbills.api.routes.bills import router
"""

__all__ = [
	"routes",
]
