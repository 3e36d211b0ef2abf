from pathlib import Path

from src.core.orchestrator import ResultsExport


class ResultsStorage:
    """Saves a results export on the caller's side; the gateway never persists anything."""

    def __init__(self, base_path: str = "downloads"):
        self.base_path = Path(base_path)

    def save(self, export: ResultsExport) -> str:
        self.base_path.mkdir(parents=True, exist_ok=True)
        file_path = self.base_path / export.filename
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(export.content)

        return str(file_path)
