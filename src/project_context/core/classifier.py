from collections.abc import Iterable, Mapping
from typing import Any

UNKNOWN_LANGUAGE = "Unknown"
UNKNOWN_PACKAGE_MANAGER = "unknown"

_EXTENSION_LANGUAGE_MAP = {
    ".ts": "TypeScript",
    ".js": "JavaScript",
    ".py": "Python",
    ".java": "Java",
    ".cpp": "C++",
    ".c": "C",
    ".go": "Go",
    ".rs": "Rust",
    ".php": "PHP",
    ".rb": "Ruby",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".cs": "C#",
}

# Checked in order; the first marker present in the manifest wins.
_FRAMEWORK_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("react",), "React"),
    (("vue",), "Vue.js"),
    (("angular", "@angular/core"), "Angular"),
    (("svelte",), "Svelte"),
    (("express",), "Express.js"),
    (("fastify",), "Fastify"),
    (("nest", "@nestjs/core"), "NestJS"),
    (("next",), "Next.js"),
    (("nuxt",), "Nuxt.js"),
)

# Lock files first, then other ecosystems' manifests, then a bare package.json.
_PACKAGE_MANAGER_MARKERS: tuple[tuple[str, str], ...] = (
    ("package-lock.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("Cargo.toml", "cargo"),
    ("requirements.txt", "pip"),
    ("Pipfile", "pip"),
    ("go.mod", "go mod"),
    ("Gemfile", "bundler"),
    ("composer.json", "composer"),
    ("package.json", "npm"),
)


def detect_language(extension_counts: Mapping[str, int]) -> str:
    """Pick the language whose extension occurs most often.

    Ties go to the extension seen first, i.e. the iteration order of
    *extension_counts*, which the traversal engine fills in visiting order.
    """
    best: str | None = None
    best_count = 0
    for extension, count in extension_counts.items():
        if extension in _EXTENSION_LANGUAGE_MAP and count > best_count:
            best, best_count = extension, count
    return _EXTENSION_LANGUAGE_MAP[best] if best else UNKNOWN_LANGUAGE


def _declared_names(manifest: Mapping[str, Any]) -> set[str]:
    names: set[str] = set()
    for section in ("dependencies", "devDependencies"):
        declared = manifest.get(section)
        if isinstance(declared, Mapping):
            names.update(declared)
    return names


def detect_framework(manifest: Mapping[str, Any]) -> str | None:
    declared = _declared_names(manifest)
    for markers, framework in _FRAMEWORK_MARKERS:
        if any(marker in declared for marker in markers):
            return framework
    return None


def detect_package_manager(file_names: Iterable[str]) -> str:
    present = set(file_names)
    for marker, manager in _PACKAGE_MANAGER_MARKERS:
        if marker in present:
            return manager
    return UNKNOWN_PACKAGE_MANAGER
