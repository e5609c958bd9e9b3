"""Property-based tests for provider compilation, validation and conflict rules."""

import pytest
from hypothesis import assume, given, settings, strategies as st

from dbdock.models.containers import Container
from dbdock.providers import BUILTIN_PROVIDERS
from dbdock.schema import FieldsOptions
from dbdock.utils.container_rules import is_name_available, is_port_available

PROVIDERS = [provider_cls() for provider_cls in BUILTIN_PROVIDERS]

names = st.from_regex(r"[a-zA-Z0-9][a-zA-Z0-9_.-]{2,30}", fullmatch=True)
ports = st.integers(min_value=1024, max_value=65535)


@st.composite
def provider_and_version(draw):
    provider = draw(st.sampled_from(PROVIDERS))
    return provider, draw(st.sampled_from(provider.versions))


def _valid_config(provider, name, port, version):
    config = provider.default_config(FieldsOptions())
    config.update(
        {
            "name": name,
            "port": port,
            "version": version,
            "password": "Str0ng!Pass",
            "accept_eula": True,
        }
    )
    return config


@pytest.mark.property
@given(provider_and_version(), names, ports)
@settings(max_examples=200)
def test_image_tag_is_the_configured_version(pair, name, port):
    """Property: the image always ends with the selected version tag."""
    provider, version = pair

    descriptor = provider.build_docker_args({"name": name, "port": port, "version": version})

    assert descriptor.image.endswith(f":{version}")


@pytest.mark.property
@given(provider_and_version(), names, st.booleans())
def test_volumes_follow_persistence_flag(pair, name, persist):
    """Property: one '<name>-data' volume when persisting, none otherwise."""
    provider, version = pair

    descriptor = provider.build_docker_args(
        {"name": name, "port": provider.default_port, "version": version, "persist_data": persist}
    )

    if persist:
        assert [v.name for v in descriptor.volumes] == [f"{name}-data"]
    else:
        assert descriptor.volumes == []


@pytest.mark.property
@given(
    st.sampled_from(PROVIDERS),
    st.dictionaries(
        st.sampled_from(["name", "port", "version", "password", "username", "persist_data", "accept_eula"]),
        st.one_of(st.none(), st.text(max_size=12), st.integers(), st.booleans()),
    ),
)
def test_validate_config_is_pure(provider, config):
    """Property: validating twice gives the same result and leaves the input intact."""
    snapshot = dict(config)

    first = provider.validate_config(config)
    second = provider.validate_config(config)

    assert first == second
    assert first.valid == (first.errors == [])
    assert config == snapshot


@pytest.mark.property
@given(
    st.sampled_from([p for p in PROVIDERS if p.requires_auth()]).flatmap(
        lambda p: st.tuples(st.just(p), st.sampled_from(p.versions))
    ),
    names,
    ports,
)
@settings(max_examples=200)
def test_complete_config_is_valid(pair, name, port):
    """Property: a config filling every required field passes validation."""
    provider, version = pair
    # Elasticsearch publishes its transport port on 9300 by default
    assume(port != 9300)

    result = provider.validate_config(_valid_config(provider, name, port, version))

    assert result.valid, result.errors


@pytest.mark.property
@given(ports, st.lists(ports, max_size=5, unique=True))
def test_port_conflict_excludes_self(port, other_ports):
    """Property: a database never conflicts with itself."""
    assume(port not in other_ports)
    others = [
        Container(id=f"other-{i}", name=f"other-{i}", db_type="Redis", version="8", port=p)
        for i, p in enumerate(other_ports)
    ]
    owner = Container(id="self", name="self-db", db_type="Redis", version="8", port=port)
    containers = others + [owner]

    assert not is_port_available(port, containers)
    assert is_port_available(port, containers, exclude_id="self")
    assert not is_name_available("self-db", containers)
    assert is_name_available("self-db", containers, exclude_id="self")
