"""
Shared Hypothesis configuration for property-based tests.

Configuration:
- 100 examples per test by default (HYPOTHESIS_PROFILE=ci for 1000,
  thorough for 10000)
- Reproducible failures via printed blobs
"""

import os

from hypothesis import HealthCheck, Phase, Verbosity, settings

# Register Hypothesis profiles
settings.register_profile(
    "ci",
    max_examples=1000,
    deadline=None,  # Disable deadline for CI
    print_blob=True,  # Print reproduction info on failure
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    suppress_health_check=[HealthCheck.too_slow],
)

settings.register_profile(
    "thorough",
    max_examples=10000,
    deadline=None,
    print_blob=True,
    suppress_health_check=[HealthCheck.too_slow],
)

settings.register_profile(
    "dev",
    max_examples=100,
    deadline=None,
    print_blob=True,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))
