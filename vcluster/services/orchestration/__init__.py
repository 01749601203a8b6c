"""
Orchestration Module

Only the Kubernetes backend exists; see the kubernetes subpackage.
"""
