# waxpacks

Language packs that scan a repository for uses of design-system components
and report what they find as structured scan facts.

Three packs are included:

- **basic** (`waxpacks.basic`) – a language-agnostic text line scanner. It
  matches calls such as `PrimaryButton(` against the symbols and aliases
  declared in a design-system registry. It drops `//` comments and blanks out
  double-quoted strings before matching, and skips matches preceded by a
  letter, digit, `_` or `.`. Its results are heuristic and always reported
  with status `partial`.
- **compose** (`waxpacks.compose`) – a Kotlin / Jetpack Compose scanner built
  on a small Kotlin lexer (`waxpacks.kotlin_syntax`). It scans `.kt` files
  for unqualified calls to registry components and for local `@Composable`
  functions whose names start with an upper-case ASCII letter. Qualified
  calls such as `com.example.PrimaryButton()` are not counted.
- **react** (`waxpacks.react`) – a placeholder pack that always returns
  partial facts with a single `react_scaffold` diagnostic.

## Installing

```
pip install .
```

Tests need the `test` extra: `pip install .[test]`, then `pytest`.

## Running a pack

Each pack reads JSON scan requests, one per line, on standard input. It
answers the first non-blank line with a single JSON response line and then
exits:

```
wax-lang-basic --stdio
wax-lang-compose --stdio
wax-lang-react --stdio
```

Without `--stdio` the pack prints a usage line to standard error and exits
with status 2.

A request looks like this:

```json
{"type": "scan", "api_version": 1, "language_id": "compose",
 "repo_root": "/path/to/repo", "snapshot_id": "snap-1",
 "config": {"design_system_registry": "design-system/registry.json",
            "roots": ["app/src/main/kotlin"]}}
```

A successful scan is answered with a `scan_facts` response holding the
facts. Failures are answered with an `error` response whose `code` is one of:

- `config_invalid` – the line is not a valid request (the response then
  carries the pack's own language id), or the scan config is invalid. The
  basic pack also uses it for a wrong language id and a malformed registry.
- `api_version_unsupported` – the request's `api_version` is not 1.
- `parser_init_failed` – the compose pack could not set up its parser.
- `scan_failed` – any other scan failure, including a wrong language id for
  the compose and react packs and a malformed registry for the compose pack.

If the request `config` holds none of the scan keys, the basic and compose
packs return partial scaffold facts with a `basic_scaffold` or
`compose_scaffold` diagnostic instead of scanning.

## Registry format

```json
{"components": [
  {"symbol": "PrimaryButton", "aliases": ["PrimaryBtn"]},
  {"symbol": "TextField"}
]}
```

Aliases resolve to their canonical symbol. A registry must declare at least
one component. `waxpacks.registry.load_registry` reads and indexes a
registry file and raises `RegistryError` when its content is not valid.

## Basic pack configuration

| key                      | meaning                                                    |
|--------------------------|------------------------------------------------------------|
| `design_system_registry` | repo-relative path to the registry JSON (required)         |
| `roots`                  | non-empty list of repo-relative directories (required)     |
| `file_extensions`        | optional extensions to include, with or without a dot      |
| `include_globs`          | optional literal names or `*suffix` patterns, e.g. `*.src` |

Absolute paths and `..` segments are rejected. Symbolic links are skipped,
and roots that do not exist are passed over silently. With neither
`file_extensions` nor `include_globs`, every regular file is scanned.

## Compose pack configuration

`design_system_registry` and `roots` as above (both required). Every `.kt`
file below the roots is scanned. A root that does not exist, or a file that
cannot be tokenized, adds a warning diagnostic (`root_not_found` or
`parse_failed`) and makes the status `partial`; otherwise it is `complete`.

## Using the packs from Python

```python
from waxpacks.facts import ScanRequest
from waxpacks.basic import BasicLanguage

request = ScanRequest.from_dict({
    "type": "scan",
    "api_version": 1,
    "language_id": "basic",
    "repo_root": "/path/to/repo",
    "snapshot_id": "snap-1",
    "config": {
        "design_system_registry": "design-system/registry.json",
        "roots": ["app/src"],
        "file_extensions": ["src"],
    },
})
facts = BasicLanguage().scan(request)
print(facts.counts.usage_site_count)
print(facts.to_dict())
```

`ComposeLanguage` in `waxpacks.compose` and `ReactLanguage` in
`waxpacks.react` work the same way. Each raises its own error class,
`BasicScanError`, `ComposeScanError` or `ReactScanError`, when a scan cannot
produce valid facts. `waxpacks.stdio.run_stdio` runs the request/response
protocol over any line iterable and text writer.

## What this package does not do

The packs answer scan requests; nothing here launches packs, installs them,
reads a project configuration file or aggregates their facts into adoption
reports. The react pack does not extract anything from React sources.