"""Snapshot file loading and saving.

A snapshot is a YAML document describing the content of a repository: the
root site with its sub-sites, lists, folders, items and file versions. The
in-memory backend serves a snapshot and the CLI writes it back after changes.

Snapshot structure:
    site:
      title: "Team"
      sites:
        - name: "projects"
          title: "Projects"
      lists:
        - name: "Shared Documents"
          library: true
          template: 101
          items:
            - name: "readme.txt"
              type: file
              versions:
                - number: "1"
                  content: "aGVsbG8="   # base64
"""

import os
from typing import Any, Dict

import yaml

from .errors import SnapshotError


class SnapshotStore:
    """Handles snapshot file loading, validation, and saving.

    A missing snapshot is treated as an empty repository with just the root
    site, so a drive can be started from nothing.
    """

    @staticmethod
    def empty() -> Dict[str, Any]:
        return {'site': {'title': '', 'sites': [], 'lists': []}}

    @classmethod
    def load(cls, snapshot_path: str) -> Dict[str, Any]:
        """Load a snapshot from a YAML file.

        Args:
            snapshot_path: Path to the YAML snapshot

        Returns:
            Snapshot dictionary with a 'site' root node

        Raises:
            SnapshotError: If the file cannot be read or is malformed
        """
        try:
            with open(snapshot_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return cls.empty()
        except PermissionError:
            raise SnapshotError(snapshot_path, 'Permission denied')
        except OSError as e:
            raise SnapshotError(snapshot_path, str(e))

        if not content.strip():
            return cls.empty()

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SnapshotError(snapshot_path, f"Invalid YAML syntax: {str(e)}")

        if data is None:
            return cls.empty()

        if not isinstance(data, dict):
            raise SnapshotError(
                snapshot_path,
                f"Snapshot must be a YAML dictionary, got {type(data).__name__}"
            )

        site = data.get('site')
        if site is None:
            data['site'] = cls.empty()['site']
        elif not isinstance(site, dict):
            raise SnapshotError(
                snapshot_path,
                f"Field 'site' must be a dictionary, got {type(site).__name__}"
            )

        return data

    @classmethod
    def save(cls, snapshot_path: str, data: Dict[str, Any]) -> None:
        """Save a snapshot to a YAML file.

        Raises:
            SnapshotError: If the file cannot be written
        """
        yaml_str = yaml.safe_dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        snapshot_dir = os.path.dirname(snapshot_path)
        if snapshot_dir:
            try:
                os.makedirs(snapshot_dir, exist_ok=True)
            except OSError as e:
                raise SnapshotError(snapshot_dir, f"Cannot create directory: {e}")

        try:
            with open(snapshot_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise SnapshotError(snapshot_path, 'Permission denied')
        except OSError as e:
            raise SnapshotError(snapshot_path, str(e))
