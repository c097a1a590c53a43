import tomllib

from hypothesis import given, strategies as st

from procprep.preparable import BundleWorkload, SourceWorkload
from procprep.registry import RegistryDocument
from procprep.utils import dump_toml

text = st.text(
    alphabet=st.characters(categories=["L", "N", "P", "Zs"]), max_size=12
)
names = st.from_regex(r"[a-z][a-z0-9_-]{0,10}", fullmatch=True)
common = {
    "sys_folder": text,
    "working_dir": text,
    "keep_alive": st.booleans(),
    "args": st.lists(text, max_size=3).map(tuple),
    "envs": st.dictionaries(names, text, max_size=3),
}

source_workloads = st.builds(
    SourceWorkload,
    name=names,
    source_path=text.filter(bool),
    **common,
)
bundle_workloads = st.builds(
    BundleWorkload,
    name=names,
    bundle_data=st.binary(max_size=16).map(bytes.hex),
    **common,
)


@given(
    descriptors=st.lists(
        st.one_of(source_workloads, bundle_workloads),
        max_size=4,
        unique_by=lambda d: d.name,
    )
)
def test_registry_document_survives_toml(
    descriptors: list[SourceWorkload | BundleWorkload],
) -> None:
    document = RegistryDocument(workloads={d.name: d for d in descriptors})
    restored = RegistryDocument.model_validate(tomllib.loads(dump_toml(document)))
    assert restored == document
