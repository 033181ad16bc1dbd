"""Common literal values used across forest_pages.

These constants keep cache layout names, reserved slugs, and file suffixes
centralized so the cache, pipeline, CLI, and tests import the same values
without drifting. Intended for internal use within the forest_pages package.

Examples
--------
>>> from forest_pages import _constants
>>> _constants.HASH_SUFFIX_TEMPLATE.format(path="notes/index.md")
'notes/index.md.hash'
>>> _constants.METADATA_SLUG_TEMPLATE.format(slug="index")
'index:metadata'
"""

INDEX_SLUG = "index"
METADATA_SLUG_SUFFIX = ":metadata"
METADATA_SLUG_TEMPLATE = "{slug}" + METADATA_SLUG_SUFFIX

CACHE_DIR_NAME = ".cache"
HASH_DIR_NAME = "hash"
ENTRY_DIR_NAME = "entry"
HASH_SUFFIX_TEMPLATE = "{path}.hash"
ENTRY_SUFFIX_TEMPLATE = "{path}.entry"

SOURCE_EXTENSIONS = ("md", "typst")
IGNORED_FILE_NAMES = frozenset({"README.md"})
DEFAULT_CONFIG_NAME = "forest.yaml"
STYLESHEET_NAME = "main.css"
HEAD_INCLUDE_NAMES = ("import-meta.html", "import-fonts.html", "import-math.html")
