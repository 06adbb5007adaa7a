from django.apps import AppConfig


class RebalancerConfig(AppConfig):
    name = "rebalancer"
    verbose_name = "GnuCash Rebalancer"

    def ready(self) -> None:
        from rebalancer import checks  # noqa: F401
