import glob
import logging
import os
import uuid
from typing import Any, Dict, List, Optional

import pandas as pd

from .errors import NotFound
from .models import Item, ItemSet, make_set_id

logger = logging.getLogger(__name__)

# Column names of the original JSON exports, mapped onto ours.
LEGACY_COLUMNS = {
    "Question Text": "kanji",
    "Option 1": "reading",
    "Answer explanation": "meaning",
}


def read_table(file_path: str) -> pd.DataFrame:
    if file_path.endswith(".json"):
        df = pd.read_json(file_path, orient="records", dtype=False)
    else:
        df = pd.read_csv(file_path, encoding="utf-8", dtype=str, keep_default_na=False)
    return df.rename(columns=LEGACY_COLUMNS)


# Namespace for item ids derived from a set and a row.
ITEM_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "kanjiquiz/items")


def item_id_for(set_id: str, position: int, prompt: str) -> str:
    """Stable id for a row, so saved orders still resolve after a reload."""
    return str(uuid.uuid5(ITEM_NAMESPACE, f"{set_id}/{position}/{prompt}"))


def frame_to_items(df: pd.DataFrame, set_id: str) -> List[Item]:
    ids = df["id"].fillna("").astype(str) if "id" in df.columns else None
    df = df.reindex(columns=["kanji", "reading", "meaning"]).fillna("")
    items = []
    for position, row in enumerate(df.to_dict("records")):
        prompt = str(row["kanji"])
        explicit = ids.iloc[position].strip() if ids is not None else ""
        items.append(
            Item(
                id=explicit or item_id_for(set_id, position, prompt),
                prompt=prompt,
                reading=str(row["reading"]),
                meaning=str(row["meaning"]),
            )
        )
    return items


class VocabularyManager:
    """Manages loading and accessing vocabulary sets.

    Sets are read from ``<directory>/<level>/<name>.csv`` (or ``.json``).
    """

    def __init__(self, directory: str):
        self.directory = directory
        self.vocab_sets: Dict[str, ItemSet] = {}

    def load_all(self):
        self.vocab_sets = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add level folders.")
            return

        pattern = os.path.join(self.directory, "*", "*.*")
        for file_path in sorted(glob.glob(pattern)):
            if not file_path.endswith((".csv", ".json")):
                continue
            level = os.path.basename(os.path.dirname(file_path))
            name = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = read_table(file_path)
            except (ValueError, OSError) as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue
            if "kanji" not in df.columns:
                logger.error(f"Skipping {file_path}: Missing kanji column.")
                continue
            set_id = make_set_id(level, name)
            item_set = ItemSet(level=level, name=name, items=frame_to_items(df, set_id))
            if item_set.identity in self.vocab_sets:
                logger.error(f"Skipping {file_path}: set {item_set.identity} already loaded.")
                continue
            self.vocab_sets[item_set.identity] = item_set
            logger.info(f"Loaded {len(item_set.items)} items from {level}/{name}")

        if not self.vocab_sets:
            logger.warning("No vocabulary files found.")

    def add_set(self, item_set: ItemSet):
        self.vocab_sets[item_set.identity] = item_set

    def find_set(self, set_id: str) -> Optional[ItemSet]:
        return self.vocab_sets.get(set_id)

    def get_set(self, set_id: str) -> ItemSet:
        item_set = self.find_set(set_id)
        if item_set is None:
            raise NotFound(f"Unknown set {set_id}")
        return item_set

    def get_sets(self) -> List[Dict[str, Any]]:
        sets = [
            {
                "id": key,
                "level": item_set.level,
                "name": item_set.name.replace("_", " ").title(),
                "count": len(item_set.items),
            }
            for key, item_set in self.vocab_sets.items()
        ]
        sets.sort(key=lambda x: (x["level"], x["name"]))
        return sets

    def delete_all(self):
        logger.info(f"Dropping {len(self.vocab_sets)} loaded sets")
        self.vocab_sets = {}
