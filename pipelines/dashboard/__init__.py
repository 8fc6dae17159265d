from .aggregator import DashboardStats, get_dashboard_stats, get_high_scoring_entities

__all__ = ["DashboardStats", "get_dashboard_stats", "get_high_scoring_entities"]
