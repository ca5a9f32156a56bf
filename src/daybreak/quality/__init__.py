"""Quality domain: guardrails for autonomous operation."""
