"""watch-copy: copy files that change under a watched folder.

Watches a source folder tree, filters modified files against a regular
expression and copies every match into a flat destination folder.
"""

__version__ = "1.0.0"
__app_name__ = "watch-copy"
