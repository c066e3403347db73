"""SQLModel table exports."""

from .snapshot import PortfolioSnapshot

__all__ = ["PortfolioSnapshot"]
