"""Startup data: sample lessons, spaces reset, empty carts, optional demo login."""
from __future__ import annotations

import logging
from typing import Dict, List

from auth import AuthService
from cart import CartService
from config import Settings
from lessons import LESSONS, LessonCatalog
from storage import DocumentStore

logger = logging.getLogger(__name__)

SAMPLE_LESSONS: List[Dict] = [
    {"_id": "69122bfeabae0cc1bdee6992", "subject": "art", "location": "A 12", "price": 5, "spaces": 10, "image": "Art.jpg"},
    {"_id": "69122bfeabae0cc1bdee6993", "subject": "coding", "location": "B 07", "price": 10, "spaces": 10, "image": "Coding.jpg"},
    {"_id": "69122bfeabae0cc1bdee6994", "subject": "dance", "location": "C 15", "price": 15, "spaces": 10, "image": "Dance.jpg"},
    {"_id": "69122bfeabae0cc1bdee6995", "subject": "drama", "location": "D 22", "price": 20, "spaces": 10, "image": "Drama.jpg"},
    {"_id": "69122bfeabae0cc1bdee698e", "subject": "english", "location": "E 03", "price": 25, "spaces": 10, "image": "English.jpg"},
    {"_id": "69122bfeabae0cc1bdee6990", "subject": "history", "location": "F 18", "price": 5, "spaces": 10, "image": "History.jpg"},
    {"_id": "69122bfeabae0cc1bdee698d", "subject": "math", "location": "G 09", "price": 10, "spaces": 10, "image": "Math.jpg"},
    {"_id": "69122bfeabae0cc1bdee6991", "subject": "music", "location": "H 14", "price": 15, "spaces": 10, "image": "Music.jpg"},
    {"_id": "69122bfeabae0cc1bdee698f", "subject": "science", "location": "I 21", "price": 20, "spaces": 10, "image": "Science.jpg"},
    {"_id": "69122bfeabae0cc1bdee6996", "subject": "sports", "location": "J 06", "price": 25, "spaces": 10, "image": "Sports.jpg"},
]

# Older databases used these field names.
LEGACY_FIELDS = {"topic": "subject", "space": "spaces"}


def rename_legacy_fields(store: DocumentStore) -> int:
    renamed = 0
    for doc in store.find(LESSONS):
        if not any(old in doc for old in LEGACY_FIELDS):
            continue
        for old, new in LEGACY_FIELDS.items():
            if old in doc:
                value = doc.pop(old)
                doc.setdefault(new, value)
        store.put(LESSONS, doc["_id"], doc)
        renamed += 1
    if renamed:
        logger.info("Renamed legacy fields on %s lessons", renamed)
    return renamed


def seed_lessons(store: DocumentStore, spaces: int) -> None:
    catalog = LessonCatalog(store)
    if store.count(LESSONS) == 0:
        for lesson in SAMPLE_LESSONS:
            store.insert(LESSONS, dict(lesson, spaces=spaces))
        logger.info("Seeded %s sample lessons", len(SAMPLE_LESSONS))
    else:
        catalog.reset_spaces(spaces)


def seed_demo_user(store: DocumentStore, settings: Settings) -> None:
    if not settings.demo_user or settings.demo_password is None:
        return
    auth = AuthService(store, settings)
    if auth.find_user(settings.demo_user) is None:
        auth.register(settings.demo_user, settings.demo_password.get_secret_value())


def run_startup(store: DocumentStore, settings: Settings) -> None:
    rename_legacy_fields(store)
    if store.ensure_text_index(LESSONS, ["subject", "location"], "subject_text_location_text"):
        logger.info("Created text index")
    seed_lessons(store, settings.default_spaces)
    CartService(store).reset()
    seed_demo_user(store, settings)
