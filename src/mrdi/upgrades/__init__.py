"""Version upgrade pipeline; importing this package registers the built-in scripts."""

from mrdi.upgrades import scripts as _scripts  # noqa: F401
from mrdi.upgrades.pipeline import UpgradePipeline
from mrdi.upgrades.pipeline import UpgradeScript
from mrdi.upgrades.pipeline import default_pipeline
from mrdi.upgrades.pipeline import register_upgrade_script
from mrdi.upgrades.pipeline import transform_nodes

__all__ = [
    "UpgradePipeline",
    "UpgradeScript",
    "default_pipeline",
    "register_upgrade_script",
    "transform_nodes",
]
