"""Service orchestration layer: coordinates multi-service workflows.

Modules:
- render_service: Orchestrates the upload/submit/poll/persist render pipeline.
- polling: Pure poll state machine for remote render jobs.
"""
