"""Release tooling for Obsidian-style plugins.

Parses CHANGELOG.md, resolves the next SemVer version, keeps manifest.json,
package.json and versions.json in sync, then commits, tags and pushes.
"""
