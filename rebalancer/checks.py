"""
Custom Django system checks for the rebalancer.

These checks run with `manage.py check` and before management commands, so a
bad REBALANCER setting is reported up front instead of part way through a run.

Registered from RebalancerConfig.ready().
"""

from decimal import Decimal

from django.core.checks import Error, Warning, register
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from rebalancer.conf import get_settings


@register()
def check_rebalancer_settings(app_configs, **kwargs):
    """
    Verify the REBALANCER settings can be parsed and make sense.

    Returns:
        List of Error objects for unusable configuration.
    """
    try:
        config = get_settings()
    except ImproperlyConfigured as e:
        return [
            Error(
                str(e),
                hint="Check the REBALANCER_* and GNUCASH_* environment variables",
                id="rebalancer.E001",
            )
        ]

    errors = []
    if config.birthday >= timezone.localdate():
        errors.append(
            Error(
                f"REBALANCER_BIRTHDAY {config.birthday} is not in the past",
                hint="Set REBALANCER_BIRTHDAY to your date of birth (YYYY-MM-DD)",
                id="rebalancer.E002",
            )
        )

    if config.targets:
        total = sum(config.targets.values(), Decimal("0"))
        if total != Decimal("1"):
            errors.append(
                Error(
                    f"REBALANCER_TARGETS ratios total {total}, not 1",
                    hint="Example: US_TOTAL=0.6,INTL_STOCKS=0.3,US_BONDS=0.1",
                    id="rebalancer.E003",
                )
            )
    return errors


@register()
def check_rebalancer_files(app_configs, **kwargs):
    """
    Verify the configured book and classification files exist.

    Missing files only warn: both can be supplied on the command line.

    Returns:
        List of Warning objects for missing files.
    """
    try:
        config = get_settings()
    except ImproperlyConfigured:
        # Reported by check_rebalancer_settings
        return []

    warnings = []
    if not config.book_path.is_file():
        warnings.append(
            Warning(
                f"GnuCash book not found: {config.book_path}",
                hint="Set GNUCASH_BOOK or pass --book",
                id="rebalancer.W001",
            )
        )
    if config.classifications_path is not None and not config.classifications_path.is_file():
        warnings.append(
            Warning(
                f"Asset classification file not found: {config.classifications_path}",
                hint="Set ASSET_CLASSIFICATIONS or pass --classifications",
                id="rebalancer.W002",
            )
        )
    return warnings
