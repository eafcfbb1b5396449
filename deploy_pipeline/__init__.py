"""Deployment pipeline orchestrator.

Runs checkout, quality gate, build, artifact publish, redeploy and
verification against external collaborators (Maven, SonarQube, Nexus,
Tomcat) as one sequential run with per-step results.
"""

__version__ = "0.1.0"
