import pytest
import tempfile
import os
import sys
from typing import Dict
import logging

from skeleton_codebase import Config, SkeletonGenerator

# Configure logging for tests - Windows safe
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


@pytest.fixture
def temp_project_dir():
    """Create a temporary directory for individual test projects"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def write_sources(temp_project_dir):
    """Return a helper that writes {relative path: content} and returns the paths"""

    def _write(files: Dict[str, str]) -> Dict[str, str]:
        written = {}
        for rel_path, content in files.items():
            written[rel_path] = create_file_with_content(
                temp_project_dir, rel_path, content
            )
        return written

    return _write


@pytest.fixture
def sample_sources(write_sources):
    """The two-file Rust/Python scenario"""
    return write_sources(
        {
            "a.rs": "pub fn foo() { 1+1; }\n",
            "b.py": "class C:\n    def m(self):\n        pass\n",
        }
    )


@pytest.fixture
def multilanguage_project(write_sources):
    """One file per supported language family, plus files that must be skipped"""
    return write_sources(
        {
            "src/main.py": """import os
from typing import List

# Entry point helpers
class Runner:
    def run(self, items: List[str]) -> int:
        total = len(items)
        return total


def main():
    print(Runner().run(os.listdir(".")))
""",
            "src/lib.rs": """use std::collections::HashMap;

/// Registry of values
pub struct Registry {
    items: HashMap<String, i32>,
}

impl Registry {
    pub fn get(&self, key: &str) -> Option<i32> {
        self.items.get(key).copied()
    }
}
""",
            "web/app.ts": """import { Api } from './api';

export interface User {
  id: number;
  name: string;
}

export function loadUser(api: Api, id: number): Promise<User> {
  return api.fetch(`/users/${id}`);
}
""",
            "web/view.tsx": """import React from 'react';

export const Badge = (props: { label: string }) => {
  return <span className="badge">{props.label}</span>;
};
""",
            "web/util.js": """const helper = require('./helper');

function double(x) {
  return helper.mul(x, 2);
}
""",
            "README.md": "# Project\n\nNot source code.\n",
            "src/empty.py": "VALUE = 1\n",
        }
    )


@pytest.fixture
def fast_config():
    """Quiet config with a small pool"""
    return Config(max_workers=4, verbose=False)


@pytest.fixture
def generator(fast_config):
    return SkeletonGenerator(fast_config)


@pytest.fixture
def large_test_project():
    """Create a larger project of Python modules for performance/memory testing"""
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = []
        for i in range(200):
            module_dir = os.path.join(tmpdir, f"module_{i:03d}")
            os.makedirs(module_dir, exist_ok=True)
            module_content = f"""
# Module {i} - Processing utilities
import os
import json
from typing import Dict, List, Optional

class DataProcessor{i}:
    '''Process data for module {i}'''

    def __init__(self, config: Dict):
        self.config = config
        self.processed_items = []

    def process(self, data: List[Dict]) -> List[Dict]:
        results = []
        for item in data:
            results.append({{"id": item.get("id"), "module": {i}}})
        return results

def utility_function_{i}(data):
    return f"Processed by module {i}: {{data}}"
"""
            path = os.path.join(module_dir, "processor.py")
            with open(path, "w", encoding="utf-8") as f:
                f.write(module_content)
            paths.append(path)
        yield paths


def create_file_with_content(
    directory: str, filename: str, content: str, encoding: str = "utf-8"
):
    """Helper to create files with specific content and encoding - Windows safe"""
    filepath = os.path.join(directory, filename.replace("/", os.sep))
    os.makedirs(os.path.dirname(filepath), exist_ok=True)

    if encoding == "binary":
        with open(filepath, "wb") as f:
            f.write(content.encode("utf-8", errors="ignore"))
    else:
        with open(filepath, "w", encoding=encoding, newline="\n") as f:
            f.write(content)

    return filepath


def validate_xml_structure(content: str) -> Dict[str, any]:
    """Validate the XML structure of a skeleton artifact"""
    validation_result = {
        "has_declaration": content.startswith("<?xml"),
        "has_files_tags": "<files>" in content and "</files>" in content,
        "file_count": content.count("<file path="),
        "balanced_file_tags": content.count("<file path=") == content.count("</file>"),
        "errors": [],
    }

    if not validation_result["has_declaration"]:
        validation_result["errors"].append("Missing XML declaration")

    if not validation_result["has_files_tags"]:
        validation_result["errors"].append("Missing files wrapper tags")

    if not validation_result["balanced_file_tags"]:
        validation_result["errors"].append("Unbalanced file tags")

    validation_result["is_valid"] = len(validation_result["errors"]) == 0

    return validation_result


@pytest.fixture
def xml_validator():
    return validate_xml_structure


# Windows-compatible test markers
def pytest_configure(config):
    config.addinivalue_line("markers", "critical: marks tests as critical (must pass)")
    config.addinivalue_line(
        "markers", "important: marks tests as important (should pass)"
    )
    config.addinivalue_line(
        "markers", "performance: marks tests as performance-related"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "slow: marks tests as slow running")
    config.addinivalue_line("markers", "skip_on_windows: skip test on Windows")


def pytest_runtest_setup(item):
    """Skip certain tests on Windows"""
    if "skip_on_windows" in [marker.name for marker in item.iter_markers()]:
        if sys.platform.startswith("win"):
            pytest.skip("Skipped on Windows")
