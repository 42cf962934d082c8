"""
Ads Platform Insight Models

Daily ad-level rows populated by the platform sync jobs. The dashboard only
reads them; one row per (account, ad, date).
"""
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from funnelhub.models.base import Base


class AdInsightDaily(Base):
    """Ad performance for one day"""
    __tablename__ = "ad_insights_daily"
    __table_args__ = (
        UniqueConstraint("ad_account_id", "ad_id", "date", name="uq_insight_account_ad_date"),
        Index("ix_insight_account_date", "ad_account_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ad_account_id = Column(Integer, ForeignKey("ad_accounts.id"), nullable=False)

    # Date
    date = Column(Date, nullable=False)

    # Hierarchy
    campaign_id = Column(String, index=True, nullable=False)
    campaign_name = Column(String, nullable=False)
    adset_id = Column(String, nullable=False)
    adset_name = Column(String, nullable=False)
    ad_id = Column(String, nullable=False)
    ad_name = Column(String, nullable=True)

    status = Column(String, nullable=True)
    # Effective ad status at sync time: ACTIVE/ENABLED, PAUSED, REMOVED, ...

    # Performance metrics
    impressions = Column(Integer, default=0)
    clicks = Column(Integer, default=0)
    spend = Column(Float, default=0.0)
    leads = Column(Integer, default=0)
    # Meta: lead actions. Google: conversions.
    reach = Column(Integer, default=0)
    results = Column(Integer, default=0)

    synced_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    ad_account = relationship("AdAccount", back_populates="insights")

    def __repr__(self):
        return f"<AdInsightDaily {self.ad_id} - {self.date}>"
