"""Shared fixtures for core unit tests"""

import pytest


SAMPLE_MD = """\
# Awesome Python

> A curated list of Python things.

[![Awesome](https://awesome.re/badge.svg)](https://awesome.re)

## Contents

- [Web](#web)
- [Data](#data)

## Web

- [Flask](https://flask.palletsprojects.com) - A microframework.
- [Django](https://www.djangoproject.com/) – Batteries included.

### APIs

- [FastAPI](https://fastapi.tiangolo.com)
* [Falcon](https://falconframework.org) — Minimal.

#### Testing

- [Schemathesis](https://schemathesis.io) - Property-based API tests.

## Data

- [pandas](https://pandas.pydata.org) - Dataframes.
- [Flask again](https://flask.palletsprojects.com) - Duplicate URL.
- [Broken link](not-a-url) - Dropped.
- [Build](https://img.shields.io/badge/build-passing-green.svg)
- [Anchor](#web)

## Contributing

- [Guide](https://example.com/contributing)

### Nested under contributing

- [Hidden](https://example.com/hidden)

## License

[CC0](https://creativecommons.org/publicdomain/zero/1.0/)
"""


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
