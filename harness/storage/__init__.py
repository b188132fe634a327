"""Result persistence."""

from harness.storage.result_writer import ResultWriter, open_output, read_results

__all__ = ["ResultWriter", "open_output", "read_results"]
