"""Cloud Ops Pipeline.

Backend for a multi-cloud cost and resource dashboard: automation rule
enforcement, queued operation processing, recommendation generation, and
cloud account linking over a PostgREST row store.
"""

__version__ = "0.1.0"
__author__ = "Cloud Ops Team"
