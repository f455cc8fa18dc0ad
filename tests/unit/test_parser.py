"""Tests for compliance/parser.py."""

from __future__ import annotations

import pytest

from masonry.compliance.errors import (
    ErrorKind,
    MalformedSyntax,
    MissingRequiredField,
    SchemaError,
    UnsupportedSchemaVersion,
)
from masonry.compliance.parser import (
    DescriptorKind,
    parse_certification,
    parse_component,
    parse_descriptor,
    parse_standard,
)
from masonry.models.opencontrol import Certification, Component, Standard


class TestParseComponent:
    def test_v2_string_narrative(self):
        component = parse_component(
            'schema_version: "2.0.0"\n'
            "name: Amazon Elastic Compute Cloud\n"
            "key: EC2\n"
            "satisfies:\n"
            "  - standard_key: NIST-800-53\n"
            "    control_key: CM-2\n"
            "    narrative: Baseline configuration is kept in AMIs.\n"
            "    implementation_status: complete\n"
            "    covered_by: []\n"
        )
        assert component.key == "EC2"
        assert component.schema_version == "2.0.0"
        claim = component.satisfies[0]
        assert claim.standard_key == "NIST-800-53"
        assert claim.control_key == "CM-2"
        assert claim.narrative[0].text == "Baseline configuration is kept in AMIs."
        assert claim.implementation_statuses == ["complete"]
        assert claim.metadata == {"covered_by": []}

    def test_v3_narrative_sections(self):
        component = parse_component(
            'schema_version: "3.0.0"\n'
            "name: Login\n"
            "responsible_role: Ops\n"
            "metadata:\n"
            "  description: login service\n"
            "satisfies:\n"
            "  - standard_key: NIST-800-53\n"
            "    control_key: AC-2\n"
            "    control_origin: shared\n"
            "    narrative:\n"
            "      - key: a\n"
            "        text: Accounts are provisioned via SSO.\n"
            "      - text: Reviewed monthly.\n"
        )
        assert component.key == ""
        assert component.responsible_role == "Ops"
        assert component.metadata == {"description": "login service"}
        claim = component.satisfies[0]
        assert [s.key for s in claim.narrative] == ["a", None]
        assert claim.control_origins == ["shared"]

    def test_v3_1_plural_fields(self):
        component = parse_component(
            'schema_version: "3.1.0"\n'
            "satisfies:\n"
            "  - standard_key: NIST-800-53\n"
            "    control_key: AC-2\n"
            "    control_origins: [shared, inherited]\n"
            "    implementation_statuses: [partial, planned]\n"
        )
        claim = component.satisfies[0]
        assert claim.control_origins == ["shared", "inherited"]
        assert claim.implementation_statuses == ["partial", "planned"]

    def test_missing_satisfies_is_empty(self):
        component = parse_component('schema_version: "3.0.0"\nkey: bare\n')
        assert component.satisfies == []

    def test_numeric_control_keys_become_strings(self):
        component = parse_component(
            'schema_version: "3.0.0"\n'
            "satisfies:\n"
            "  - standard_key: PCI\n"
            "    control_key: 1.1\n"
        )
        assert component.satisfies[0].control_key == "1.1"

    def test_component_is_frozen(self):
        component = parse_component('schema_version: "3.0.0"\nkey: x\n')
        with pytest.raises(Exception):
            component.key = "y"

    def test_unversioned_reads_as_latest(self):
        component = parse_component(
            "key: x\n"
            "satisfies:\n"
            "  - standard_key: NIST-800-53\n"
            "    control_key: AC-2\n"
            "    implementation_statuses: [complete]\n"
        )
        assert component.schema_version == "3.1.0"
        assert component.satisfies[0].control_key == "AC-2"
        assert component.satisfies[0].implementation_statuses == ["complete"]

    def test_empty_schema_version_reads_as_latest(self):
        assert parse_component('schema_version: ""\nkey: x\n').schema_version == "3.1.0"

    def test_unknown_schema_version_rejected(self):
        with pytest.raises(UnsupportedSchemaVersion) as exc:
            parse_component('schema_version: "9.9.9"\nkey: x\n')
        assert exc.value.kind is ErrorKind.UNSUPPORTED_SCHEMA_VERSION
        assert "9.9.9" in str(exc.value)
        assert "3.1.0" in str(exc.value)

    def test_claim_without_control_key(self):
        with pytest.raises(MissingRequiredField):
            parse_component(
                'schema_version: "3.0.0"\n'
                "satisfies:\n"
                "  - standard_key: NIST-800-53\n"
            )

    def test_invalid_yaml(self):
        with pytest.raises(MalformedSyntax):
            parse_component("satisfies: [unclosed\n")

    def test_non_mapping_document(self):
        with pytest.raises(MalformedSyntax):
            parse_component("- just\n- a list\n")

    def test_satisfies_must_be_list(self):
        with pytest.raises(MalformedSyntax):
            parse_component('schema_version: "3.0.0"\nsatisfies: nope\n')

    def test_path_is_reported(self):
        with pytest.raises(SchemaError) as exc:
            parse_component('schema_version: "0.1"\nkey: x\n', path="components/x/component.yaml")
        assert exc.value.path == "components/x/component.yaml"


class TestParseStandard:
    def test_controls_keyed(self):
        standard = parse_standard(
            "key: NIST-800-53\n"
            "name: NIST\n"
            "controls:\n"
            "  AC-2:\n"
            "    family: AC\n"
            "    name: Account Management\n"
            "  AC-6:\n"
        )
        assert standard.key == "NIST-800-53"
        assert set(standard.controls) == {"AC-2", "AC-6"}
        assert standard.controls["AC-2"].name == "Account Management"
        assert standard.controls["AC-6"].key == "AC-6"

    def test_key_required(self):
        with pytest.raises(MissingRequiredField):
            parse_standard("name: Unkeyed\ncontrols: {}\n")

    def test_explicit_supported_version(self):
        standard = parse_standard('schema_version: "1.0.0"\nkey: S\n')
        assert standard.controls == {}

    def test_unsupported_version(self):
        with pytest.raises(UnsupportedSchemaVersion):
            parse_standard('schema_version: "2.0.0"\nkey: S\n')


class TestParseCertification:
    def test_nested_controls(self):
        certification = parse_certification(
            "name: LATO\n"
            "standards:\n"
            "  NIST-800-53:\n"
            "    controls:\n"
            "      AC-2: {}\n"
            "      AC-6:\n"
            "        name: Least Privilege\n"
            "  PCI-DSS:\n"
        )
        assert certification.key == "LATO"
        assert set(certification.standards["NIST-800-53"].controls) == {"AC-2", "AC-6"}
        assert certification.standards["PCI-DSS"].controls == {}
        assert certification.standards["NIST-800-53"].controls["AC-6"].standard_key == "NIST-800-53"

    def test_inline_controls(self):
        certification = parse_certification(
            "name: LATO\n"
            "standards:\n"
            "  NIST-800-53:\n"
            "    AC-2: {}\n"
            "    AC-6:\n"
            "      name: Least Privilege\n"
        )
        controls = certification.standards["NIST-800-53"].controls
        assert set(controls) == {"AC-2", "AC-6"}
        assert controls["AC-6"].name == "Least Privilege"

    def test_inline_control_must_be_mapping(self):
        with pytest.raises(MalformedSyntax):
            parse_certification("standards:\n  NIST-800-53:\n    AC-2: required\n")

    def test_key_defaults_to_file_stem(self):
        certification = parse_certification("standards: {}\n", path="certifications/FedRAMP-low.yaml")
        assert certification.key == "FedRAMP-low"

    def test_standards_required(self):
        with pytest.raises(MissingRequiredField):
            parse_certification("name: Empty\n")

    def test_control_must_be_mapping(self):
        with pytest.raises(MalformedSyntax):
            parse_certification(
                "standards:\n"
                "  NIST-800-53:\n"
                "    controls:\n"
                "      AC-2: [1, 2]\n"
            )


class TestParseDescriptor:
    def test_dispatch_by_kind(self):
        assert isinstance(parse_descriptor('schema_version: "3.0.0"\n', DescriptorKind.COMPONENT), Component)
        assert isinstance(parse_descriptor("key: S\n", "standard"), Standard)
        assert isinstance(parse_descriptor(b"standards: {}\n", DescriptorKind.CERTIFICATION), Certification)

    def test_repeatable(self):
        data = 'schema_version: "3.0.0"\nkey: same\n'
        assert parse_component(data) == parse_component(data)
