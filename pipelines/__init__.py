"""
Pipelines — Kubeflow Pipelines (KFP v2) definition of the delivery pipeline.

The stage logic lives in :mod:`greeting_service.delivery`; this package
only declares how the stages are chained when run on Kubeflow.
"""
