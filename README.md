# releaseplz

A library for preparing releases of Cargo workspaces from Python:

- reading and writing the `release-plz.toml` configuration, with
  workspace-wide defaults and per-package overrides;
- generating and updating Keep-a-Changelog style changelogs from
  conventional commits;
- parsing existing changelogs to find their header and latest release;
- small helpers for inspecting the installed `cargo`, reading
  `.cargo_vcs_info.json`, checking for newer releases and calling the `gh`
  command line tool.

## Configuration

```python
from releaseplz.config import Config
from releaseplz.config_path import ConfigPath

config = Config.from_toml("""
[workspace]
publish_timeout = "10m"
git_release_enable = true

[[package]]
name = "crate1"
release = false
""")

print(config.workspace.parsed_publish_timeout())  # datetime.timedelta
print(config.packages())                           # {"crate1": PackageSpecificConfig(...)}
print(config.to_toml())

# Looks for ./release-plz.toml, then ./.release-plz.toml,
# and falls back to the default configuration.
config = ConfigPath().load()
```

`Config.from_toml` and `Config.from_dict` reject unknown keys and values of
the wrong type with a `releaseplz.package_config.ConfigError`, so typos in the
configuration are caught early. `ConfigPath(path).load()` raises the same
error when the given file does not exist or is invalid.

Settings shared by `[workspace]` and `[[package]]` live in
`releaseplz.package_config.PackageConfig`; `PackageConfig.merge(default)` and
`PackageSpecificConfig.merge(default)` fill unset package values with the
workspace ones.

Durations such as `"30s"`, `"5m"`, `"1h"` or a bare `"60"` (seconds) are
accepted by `releaseplz.package_config.parse_duration`; an unset
`publish_timeout` means 30 minutes.

## Changelogs

```python
from datetime import date

from releaseplz.changelog import ChangelogBuilder, Commit

commits = [
    Commit("0000000", "fix: myfix"),
    Commit("0000000", "simple update"),
]
changelog = (
    ChangelogBuilder(commits, "1.1.1", "my_pkg")
    .with_release_date(date(2015, 5, 15))
    .build()
)
print(changelog.generate())
```

Commits are grouped into `Added`, `Changed`, `Deprecated`, `Removed`,
`Fixed`, `Security` and `Other` by default (see
`releaseplz.changelog_defaults.kac_commit_parsers`). `with_pr_link(link)`
turns references such as `(#123)` into links to pull requests, and
`with_release_link`, `with_remote`, `with_previous_version` and `with_config`
add the rest of the release details.

`Changelog.prepend(old_text)` puts the new release on top of an existing
changelog, keeping its header when one is recognized, and returns the text
unchanged when the version has not changed.

Templates are rendered with Jinja2 and may use the `group_by`, `upper_first`
and `date` filters. A template body that mentions fields such as
`author.name` or `remote.pr_number` can be inspected with
`releaseplz.changelog_filler.get_required_info`.

The `[changelog]` section of the configuration maps onto
`releaseplz.changelog_config.ChangelogCfg`; its `to_cliff_config()` compiles
all regular expressions and raises `ChangelogConfigError` naming the field
that failed.

## Reading changelogs

```python
from releaseplz.changelog_parser import (
    last_changes_from_str,
    last_version_from_str,
    parse_header,
)

text = open("CHANGELOG.md", encoding="utf-8").read()
print(parse_header(text))
print(last_version_from_str(text))
print(last_changes_from_str(text))
```

An `Unreleased` section at the top is skipped when looking for the latest
release. `last_changes(path)` reads the file itself.

## Other helpers

- `releaseplz.cargo_hash_kind.get_hash_kind()` runs `cargo --version` and
  tells whether the registry index uses the legacy or the stable hash kind.
- `releaseplz.cargo_vcs_info.read_sha1_from_cargo_vcs_info(path)` returns the
  commit recorded in a packaged crate, or `None`.
- `releaseplz.update_checker.check_update()` compares the installed version
  of this package with the latest published release and prints the result.
- `releaseplz.gh` runs the `gh` command line tool to read the repository URL,
  owner and default branch, and to store repository secrets.

## What this package does not do

There is no command line program. The package does not bump versions in
`Cargo.toml` files, run `cargo publish`, create git tags or releases, or open
release pull requests; it provides the configuration, changelog and helper
pieces that such a workflow is built from.

## Tests

The test suite uses pytest and responses, available through the `test`
extra.