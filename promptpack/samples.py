"""Sample values for previewing templates without a running story."""

from collections.abc import Mapping
from typing import Any

from promptpack.assembler import Assembler, RenderedPair
from promptpack.catalog import Catalog
from promptpack.models import Bundle

DERIVED_SAMPLES: dict[str, Any] = {
    "protagonistName": "Aria",
    "protagonistDescription": "A young woman with silver hair and violet eyes",
    "currentLocation": "The Whispering Woods",
    "storyTime": "Year 1, Day 15, 14:30",
    "genre": "Fantasy",
    "tone": "Mysterious",
    "settingDescription": "A vast magical realm where ancient forests conceal forgotten ruins.",
    "themes": ["courage", "discovery", "friendship"],
    "mode": "adventure",
    "pov": "second",
    "tense": "present",
    "visualProseMode": False,
    "inlineImageMode": False,
}

SUPPLIED_SAMPLES: dict[str, Any] = {
    "recentContent": "[Recent story content would appear here...]",
    "tieredContextBlock": "[Lorebook entries injected by tiered retrieval...]",
    "chapterSummaries": "[Formatted chapter summaries from memory system...]",
    "styleGuidance": "[Style guidance from repetition analysis...]",
    "retrievedChapterContext": "[Retrieved chapter context from memory...]",
    "inlineImageInstructions": "[Instructions for inline image generation...]",
    "visualProseInstructions": "[Instructions for visual prose mode...]",
    "povInstruction": "Write in second person perspective.",
    "lengthInstruction": "Write 2-3 paragraphs.",
    "userInput": "I want to explore the ancient ruins to the north.",
    "inputLabel": "Player Action",
    "userAction": "I want to explore the ancient ruins to the north.",
    "narrativeResponse": "[The narrative response text...]",
    "chatHistoryBlock": "[Formatted chat history...]",
    "entityCounts": "Characters: 3, Locations: 5, Items: 4",
    "currentTimeInfo": "Year 1, Day 15, 14:30",
    "existingCharacters": "Aria (protagonist), Theron (companion), Lyra (antagonist)",
    "existingLocations": "The Whispering Woods, Crystal Caverns, Thornhold Castle",
    "existingItems": "Enchanted Compass, Shadow Cloak, Moonstone Pendant",
    "activeThreads": "Finding the lost artifact, Resolving the conflict with Lyra",
    "npcsPresent": "Theron the Ranger, Old Sage Maren",
    "inventory": "Enchanted Compass, Shadow Cloak, Healing Potion x2",
    "activeQuests": "Find the Moonstone Pendant, Explore the Crystal Caverns",
    "lorebookContext": "[Relevant lorebook entries injected by context system...]",
    "chapterContent": "[Chapter entries to summarize...]",
    "previousContext": "[Previous chapter summaries for context...]",
    "recentContext": "[Recent narrative context for retrieval...]",
    "chapterList": "[Formatted chapter list for retrieval...]",
    "maxChaptersPerRetrieval": 3,
    "query": "What happened between the forest encounter and arriving at the castle?",
    "targetLanguage": "Spanish",
    "sourceLanguage": "English",
    "content": "[Content to translate or process...]",
    "imageStylePrompt": "[Style prompt for image generation...]",
    "characterDescriptors": "Silver hair, violet eyes, leather armor, elven features",
    "maxImages": 3,
    "passages": "[Formatted passages for style review...]",
    "passageCount": 5,
    "count": 3,
    "customInstruction": "Make it feel epic and mysterious.",
}


def preview(
    bundle: Bundle,
    catalog: Catalog,
    template_id: str,
    values: Mapping[str, Any] | None = None,
) -> RenderedPair:
    """Render *template_id* with the sample values, overlaid by *values*."""
    derived = {k: v for k, v in DERIVED_SAMPLES.items() if k in catalog}
    others: dict[str, Any] = {k: v for k, v in SUPPLIED_SAMPLES.items() if k in catalog}
    for name, value in (values or {}).items():
        descriptor = catalog.describe(name)
        if descriptor is not None and descriptor.origin == "derived":
            derived[name] = value
        else:
            others[name] = value
    return Assembler(bundle, catalog, derived=derived).merge(others).evaluate(template_id)
