"""Meridian – Risk engines package.

This package decomposes a position snapshot into factor exposures,
concentration flags, correlation structure, stress and tail-risk
figures, hedge and rotation suggestions and black-swan vulnerability,
and combines them into a scored :class:`RiskReport`.
"""

from __future__ import annotations

from meridian.risk.types import (
    BlackSwanAnalysis,
    BlackSwanRisk,
    ConcentrationRisk,
    ConcentrationType,
    CorrelationMatrix,
    CorrelationPair,
    EventCategory,
    Factor,
    FactorExposure,
    HedgeProtection,
    HedgeRecommendation,
    HedgeType,
    HistoricalBlackSwan,
    PositionImpact,
    ProtectionStrategy,
    RiskReport,
    RotationRecommendation,
    RotationRegime,
    StressScenarioParams,
    StressTestResult,
    TailMetrics,
    TailRiskAnalysis,
)
from meridian.risk.factors import FactorModel
from meridian.risk.concentration import ConcentrationDetector
from meridian.risk.correlation import CorrelationEngine
from meridian.risk.stress import HISTORICAL_SCENARIOS, StressTestEngine
from meridian.risk.tail import TailRiskAnalyzer
from meridian.risk.hedging import HedgeAdvisor, RotationAdvisor
from meridian.risk.black_swan import BlackSwanAnalyzer
from meridian.risk.report import RiskReportAggregator, overall_risk_level, score_risks

__all__ = [
    "BlackSwanAnalysis",
    "BlackSwanAnalyzer",
    "BlackSwanRisk",
    "ConcentrationDetector",
    "ConcentrationRisk",
    "ConcentrationType",
    "CorrelationEngine",
    "CorrelationMatrix",
    "CorrelationPair",
    "EventCategory",
    "Factor",
    "FactorExposure",
    "FactorModel",
    "HISTORICAL_SCENARIOS",
    "HedgeAdvisor",
    "HedgeProtection",
    "HedgeRecommendation",
    "HedgeType",
    "HistoricalBlackSwan",
    "PositionImpact",
    "ProtectionStrategy",
    "RiskReport",
    "RiskReportAggregator",
    "RotationAdvisor",
    "RotationRecommendation",
    "RotationRegime",
    "StressScenarioParams",
    "StressTestEngine",
    "StressTestResult",
    "TailMetrics",
    "TailRiskAnalysis",
    "TailRiskAnalyzer",
    "overall_risk_level",
    "score_risks",
]
