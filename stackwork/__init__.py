"""
Stackwork - provisioning for resources the template engine cannot manage.

Custom resources whose operations take minutes (certificate issuance and
validation) are driven by a stateless state machine that polls the owning
service across self-reinvocations and reports exactly one outcome. CI/CD
helpers start pipelines on push and deploy stacks and static sites.
"""

__version__ = "0.1.0"

from .settings import StackworkSettings, get_settings, reload_settings

__all__ = [
    "StackworkSettings",
    "get_settings",
    "reload_settings",
]
