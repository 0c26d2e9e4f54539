"""Built-in variable descriptors.

Derived variables come from the running story and are read-only to callers.
Supplied variables are pushed in per invocation by the service building the
prompt. Both sets are defined here once; bundles only add custom variables.
"""

from promptpack.models import VariableDescriptor


def _derived(name, description, value_type="text", required=False, options=()):
    return VariableDescriptor(
        name=name,
        origin="derived",
        value_type=value_type,
        description=description,
        required=required,
        enum_options=list(options),
    )


def _supplied(name, description, value_type="text"):
    return VariableDescriptor(name=name, origin="supplied", value_type=value_type, description=description)


DERIVED: tuple[VariableDescriptor, ...] = (
    _derived("protagonistName", "Name of the main character", required=True),
    _derived("protagonistDescription", "Description of the protagonist"),
    _derived("currentLocation", "Current story location"),
    _derived("storyTime", "Current in-story time"),
    _derived("genre", "Story genre"),
    _derived("tone", "Story tone/mood"),
    _derived("settingDescription", "World/setting description"),
    _derived("themes", "Story themes as comma-separated list"),
    _derived("mode", "Story mode", "enum", True, ("adventure", "creative-writing")),
    _derived("pov", "Point of view", "enum", True, ("first", "second", "third")),
    _derived("tense", "Narrative tense", "enum", True, ("past", "present")),
    _derived("visualProseMode", "Whether visual prose mode is enabled", "boolean"),
    _derived("inlineImageMode", "Whether inline image mode is enabled", "boolean"),
)

SUPPLIED: tuple[VariableDescriptor, ...] = (
    # narrative
    _supplied("recentContent", "Recent story content for context"),
    _supplied("tieredContextBlock", "Lorebook entries injected by tiered retrieval"),
    _supplied("chapterSummaries", "Formatted chapter summaries block"),
    _supplied("styleGuidance", "Style guidance from repetition analysis"),
    _supplied("retrievedChapterContext", "Retrieved chapter context from memory"),
    _supplied("inlineImageInstructions", "Instructions for inline image generation"),
    _supplied("visualProseInstructions", "Instructions for visual prose mode"),
    _supplied("povInstruction", "Point of view instruction text"),
    _supplied("lengthInstruction", "Response length instruction"),
    _supplied("userInput", "User input or action text"),
    _supplied("inputLabel", "Label for user input (Player Action or Author Direction)"),
    # classification
    _supplied("userAction", "The user action or direction text"),
    _supplied("narrativeResponse", "The narrative response text"),
    _supplied("chatHistoryBlock", "Formatted chat history block"),
    _supplied("entityCounts", "Count of existing entities (characters, locations, items)"),
    _supplied("currentTimeInfo", "Current in-story time information"),
    _supplied("existingCharacters", "Known character list for classification"),
    _supplied("existingLocations", "Known location list for classification"),
    _supplied("existingItems", "Known item list for classification"),
    # suggestions and action choices
    _supplied("activeThreads", "Active plot threads for suggestions"),
    _supplied("npcsPresent", "NPCs present in the current scene"),
    _supplied("inventory", "Current inventory contents"),
    _supplied("activeQuests", "Active quests and objectives"),
    _supplied("lorebookContext", "Injected lorebook entries"),
    # memory
    _supplied("chapterContent", "Chapter entries to summarize"),
    _supplied("previousContext", "Previous chapter summaries for context"),
    _supplied("recentContext", "Recent narrative context for retrieval"),
    _supplied("chapterList", "Formatted chapter list for retrieval"),
    _supplied("maxChaptersPerRetrieval", "Maximum chapters per retrieval decision", "number"),
    _supplied("query", "Query for timeline fill answer"),
    # translation
    _supplied("targetLanguage", "Target language for translation"),
    _supplied("sourceLanguage", "Source language for translation"),
    _supplied("content", "Content to translate or process"),
    # images
    _supplied("imageStylePrompt", "Style prompt for image generation"),
    _supplied("characterDescriptors", "Character visual descriptors for images"),
    _supplied("maxImages", "Maximum number of images to generate", "number"),
    # style review and generation
    _supplied("passages", "Formatted passages for style review"),
    _supplied("passageCount", "Number of passages being reviewed", "number"),
    _supplied("count", "Count of items to generate", "number"),
    _supplied("customInstruction", "Custom user instructions for generation"),
)

BUILTINS: tuple[VariableDescriptor, ...] = DERIVED + SUPPLIED
