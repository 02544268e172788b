"""Export command - write the live dataset as a versioned backup."""

import json
import logging
from typing import Optional

from ..core.models import TasklaneConfig
from ..merge.coordinator import ImportExportCoordinator
from ..storage.json_store import JsonFileStorage
from ..utils.io import safe_write_json


class ExportCommand:
    """Command for exporting tasks, lists, summaries and settings."""

    def __init__(self, config: TasklaneConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)

    def run(self, output: Optional[str] = None) -> bool:
        """
        Run the export.

        Args:
            output: File to write; the JSON goes to stdout when omitted

        Returns:
            True if successful, False otherwise
        """
        try:
            storage = JsonFileStorage(self.config.data_path, platform=self.config.platform,
                                      logger=self.logger)
            coordinator = ImportExportCoordinator(storage, self.config, logger=self.logger)

            if not output:
                print(coordinator.export_json())
                return True

            payload = coordinator.export_payload()
            if not safe_write_json(output, payload):
                print(f"❌ Could not write export to {output}")
                return False

            counts = payload["data"]
            print(f"✅ Exported {len(counts['tasks'])} tasks, {len(counts['lists'])} lists "
                  f"and {len(counts['summaries'])} summaries to {output}")
            return True

        except Exception as e:
            self.logger.error(f"Export failed: {e}")
            print(f"❌ Export failed: {e}")
            return False
