"""External collaborators driven as subprocesses.

- runtime: Podman/Docker selection and capability surface
- engine: container engine command wrapper
- image: base image build and presence checks
- workspace: local copy / git clone of jail sources
- editor: VSCode attach handoff
"""
from jail.services.engine import ContainerEngine
from jail.services.runtime import Runtime, detect

__all__ = ['ContainerEngine', 'Runtime', 'detect']
