"""File-based JSON storage for bundles and settings.

Data layout:
  data/
    bundles/
      <id>.json          One bundle per file, in the interchange format
                         (default.json is the built-in bundle)
    config.json          Settings (active bundle, shipped template baseline)

Bundle ids are slugs of the bundle name at creation time:
name → Unicode normalize → strip non-ASCII → lowercase →
replace non-alnum runs with hyphen → strip leading/trailing hyphens.

Writes go through validation: save_bundle() refuses a bundle with findings,
so a stored bundle can always be activated.

Config: get_config() returns defaults merged with stored values.
update_config() applies partial updates.
"""

# Re-export all public symbols so `from promptpack import storage` keeps working.

from .core import (  # noqa: F401
    bundles_dir,
    data_dir,
    init_storage,
    slugify,
)

from .bundles import (  # noqa: F401
    IMPORT_STRATEGIES,
    create_bundle,
    delete_bundle,
    get_bundle,
    get_template,
    import_bundle,
    list_bundles,
    reset_template,
    save_bundle,
    seed_default_bundle,
    set_custom_variables,
    set_template,
    update_bundle,
)

from .config import (  # noqa: F401
    get_config,
    update_config,
)
