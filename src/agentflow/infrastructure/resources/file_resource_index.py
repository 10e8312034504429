"""
File-Based Resource Index

Lists the values that can fill command parameters, straight from disk:

- templates: ``*.yaml`` / ``*.yml`` files in the templates directory; the
  display name comes from ``metadata.title`` when the template has one
- files: ``*.md`` documents in the docs directory and its direct
  sub-directories (docs/prd/, docs/stories/, ...)

Both listings degrade to empty lists when a directory is missing.
"""

from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger()

TEMPLATE_SUFFIXES = (".yaml", ".yml")


class FileResourceIndex:
    """Index of document templates and project documents."""

    def __init__(self, templates_dir: str | Path, docs_dir: str | Path):
        self.templates_dir = Path(templates_dir)
        self.docs_dir = Path(docs_dir)
        self.logger = logger.bind(component="file_resource_index")

    def list_templates(self) -> list[dict[str, Any]]:
        if not self.templates_dir.is_dir():
            self.logger.warning("templates.dir.missing", path=str(self.templates_dir))
            return []

        templates = []
        for path in sorted(self.templates_dir.iterdir()):
            if path.is_file() and path.suffix in TEMPLATE_SUFFIXES:
                templates.append(self._describe_template(path))
        return templates

    def list_files(self) -> list[dict[str, Any]]:
        if not self.docs_dir.is_dir():
            self.logger.warning("docs.dir.missing", path=str(self.docs_dir))
            return []

        files = []
        for entry in sorted(self.docs_dir.iterdir()):
            if entry.is_file() and entry.suffix == ".md":
                files.append(
                    {
                        "name": entry.name,
                        "path": str(entry),
                        "type": "document",
                        "category": "Project Documents",
                    }
                )
            elif entry.is_dir():
                for sub in sorted(entry.glob("*.md")):
                    files.append(
                        {
                            "name": f"{entry.name}/{sub.name}",
                            "path": str(sub),
                            "type": "document",
                            "category": f"{entry.name} Documents",
                        }
                    )
        return files

    def _describe_template(self, path: Path) -> dict[str, Any]:
        template_id = path.stem
        metadata: dict[str, Any] = {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if isinstance(data, dict) and isinstance(data.get("metadata"), dict):
                metadata = data["metadata"]
        except (OSError, yaml.YAMLError) as e:
            self.logger.warning("template.yaml.corrupt", path=str(path), error=str(e))

        return {
            "id": template_id,
            "name": metadata.get("title") or template_id.replace("-", " "),
            "description": metadata.get("description") or f"Template: {path.name}",
            "file": path.name,
            "path": str(path),
            "type": metadata.get("type") or "document",
        }
