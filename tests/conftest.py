"""Shared fixtures for template processing tests."""

from pathlib import Path

import pytest

from manifestgen.generation.resolvers import BuildDirectory, ResourcesDirectory

DESTINATION_RULE = """apiVersion: networking.istio.io/v1beta1
kind: DestinationRule
metadata:
  name: ${name}
spec:
  host: ${from}
  subsets:
    - name: ${to}
"""

VIRTUAL_SERVICE = """apiVersion: networking.istio.io/v1beta1
kind: VirtualService
metadata:
  name: ${name}-routes
spec:
  http:
    - route:
        - destination: {host: ${from}}
        - destination: {host: ${to}}
"""


@pytest.fixture
def resources_root(tmp_path: Path) -> Path:
    root = tmp_path / "src" / "main" / "resources"
    templates = root / "templates"
    templates.mkdir(parents=True)
    (templates / "DestinationRuleTemplate.yaml").write_text(DESTINATION_RULE)
    (templates / "VirtualServiceTemplate.yaml").write_text(VIRTUAL_SERVICE)
    return root


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    return tmp_path / "build"


@pytest.fixture
def resolvers(resources_root: Path, build_root: Path):
    return ResourcesDirectory(resources_root), BuildDirectory(build_root)
