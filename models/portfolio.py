from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from models.base import Base, utcnow, value_enum, WatchlistStatus, ThemeStockStatus


class WatchlistItem(Base):
    __tablename__ = "watchlist"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(16), nullable=False, unique=True)
    target_price = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(value_enum(WatchlistStatus, "watchlist_status"), nullable=False, default=WatchlistStatus.WATCHING)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PortfolioHolding(Base):
    """Ideal allocation for one ticker. Creating a holding graduates its watchlist entry."""
    __tablename__ = "portfolio_holdings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(16), nullable=False, unique=True)
    target_allocation = Column(Float, nullable=False)
    cost_basis = Column(Float, nullable=True)
    shares = Column(Float, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PortfolioReport(Base):
    __tablename__ = "portfolio_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    total_tickers = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class Theme(Base):
    """Investment theme grouping several tickers."""
    __tablename__ = "themes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    stocks = relationship(
        "ThemeStock",
        back_populates="theme",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ThemeStock.ticker",
    )


class ThemeStock(Base):
    __tablename__ = "theme_stocks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    theme_id = Column(Integer, ForeignKey("themes.id", ondelete="CASCADE"), nullable=False)
    ticker = Column(String(16), nullable=False)
    target_price = Column(Float, nullable=True)
    status = Column(value_enum(ThemeStockStatus, "theme_stock_status"), nullable=False, default=ThemeStockStatus.WATCHING)
    notes = Column(Text, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)

    theme = relationship("Theme", back_populates="stocks")

    __table_args__ = (
        UniqueConstraint("theme_id", "ticker", name="uq_theme_stock_ticker"),
    )
