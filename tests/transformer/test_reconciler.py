"""Tests for cross-stage interface reconciliation."""

import pytest

from glslcompat.config import CompatConfig
from glslcompat.transformer import build, patch_pipeline
from glslcompat.transformer.document import Document
from glslcompat.transformer.errors import MissingNodeError
from glslcompat.transformer.nodes import (
    InterpolationQualifier,
    StorageType,
    TranslationUnit,
)
from glslcompat.transformer.printer import print_document, print_node
from glslcompat.transformer.reconciler import (
    get_conversion,
    get_initializer,
    make_qualifier_out,
    reconcile,
)
from glslcompat.transformer.stages import PatchShaderType
from glslcompat.transformer.types import NumericType

VERTEX = PatchShaderType.VERTEX
GEOMETRY = PatchShaderType.GEOMETRY
FRAGMENT = PatchShaderType.FRAGMENT


def _out(type_, *names, qualifiers=()):
    return build.global_declaration(type_, *names, qualifiers=(*qualifiers, StorageType.OUT))


def _in(type_, *names, qualifiers=()):
    return build.global_declaration(type_, *names, qualifiers=(*qualifiers, StorageType.IN))


def _varying(type_, *names):
    return build.global_declaration(type_, *names, qualifiers=(StorageType.VARYING,))


@pytest.fixture
def consumer(stage):
    """Factory for a fragment stage reading the given inputs into its color."""

    def make(*declarations, reads=()):
        body = [build.assign("fragColor", build.call("vec4", *reads))] if reads else []
        return stage(*declarations, _out("vec4", "fragColor"), body=body)

    return make


class TestTemplates:
    """Tests for the synthesized statements."""

    @pytest.mark.parametrize(
        "numeric_type, expected",
        [
            (NumericType.FLOAT, "fog = 0.0;"),
            (NumericType.INT, "fog = 0;"),
            (NumericType.UINT, "fog = 0u;"),
            (NumericType.BOOL, "fog = false;"),
            (NumericType.VEC3, "fog = vec3(0.0);"),
            (NumericType.IVEC2, "fog = ivec2(0);"),
            (NumericType.MAT4, "fog = mat4(0.0);"),
        ],
    )
    def test_get_initializer(self, stage, numeric_type, expected):
        """Test the zero initialization of each kind of type."""
        assert print_node(get_initializer(stage(), "fog", numeric_type)) == expected

    @pytest.mark.parametrize(
        "in_type, out_type, expected",
        [
            (NumericType.VEC4, NumericType.VEC3, "n = vec4(alias, 0.0);"),
            (NumericType.VEC4, NumericType.VEC2, "n = vec4(alias, vec2(0.0));"),
            (NumericType.IVEC4, NumericType.IVEC2, "n = ivec4(alias, ivec2(0));"),
            (NumericType.VEC3, NumericType.IVEC3, "n = vec3(alias);"),
            (NumericType.FLOAT, NumericType.INT, "n = float(alias);"),
            (NumericType.MAT4, NumericType.MAT3, "n = mat4(alias);"),
        ],
    )
    def test_get_conversion(self, stage, in_type, out_type, expected):
        """Test converting the internal alias into the consumer's type."""
        document = stage()

        conversion = get_conversion(document, "n", "alias", in_type, out_type)

        assert print_node(conversion) == expected
        assert len(document.lookup("alias")) == 1

    def test_make_qualifier_out(self):
        """Test that in becomes out and other parts are kept."""
        qualifier = build.qualifier(InterpolationQualifier("flat"), StorageType.IN)

        make_qualifier_out(qualifier)

        assert [p.storage_type for p in qualifier.parts[1:]] == [StorageType.OUT]
        assert qualifier.parts[0].kind == "flat"

    def test_make_qualifier_out_keeps_varying(self):
        """Test that varying is left as it is."""
        qualifier = build.qualifier(StorageType.VARYING)

        make_qualifier_out(qualifier)

        assert qualifier.parts[0].storage_type is StorageType.VARYING


class TestMissingOutput:
    """Tests for inputs without a corresponding output."""

    def test_patches_missing_output(self, stage, consumer, warnings):
        """Test that a used input gets a zero-initialized output in the producer."""
        # Arrange
        vertex = stage(_out("vec4", "color"), body=[build.assign("color", build.call("vec4", 1.0))])
        fragment = consumer(_in("float", "foo"), reads=("foo",))
        fragment_before = print_document(fragment)

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == (
            "out float foo;\n"
            "out vec4 color;\n"
            "void main() {\n"
            "    foo = 0.0;\n"
            "    color = vec4(1.0);\n"
            "}\n"
        )
        assert print_document(fragment) == fragment_before
        assert warnings == [
            "The in declaration 'foo' in the FRAGMENT shader is missing a corresponding "
            "out declaration in the previous stage VERTEX and has been compatibility-patched."
        ]

    def test_rerun_is_a_no_op(self, stage, consumer, warnings):
        """Test that reconciling patched stages again changes nothing."""
        # Arrange
        vertex = stage(body=[])
        fragment = consumer(_in("float", "foo"), reads=("foo",))
        reconcile({VERTEX: vertex, FRAGMENT: fragment})
        patched = print_document(vertex)
        warnings.clear()

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == patched
        assert warnings == []

    def test_keeps_other_qualifier_parts(self, stage, consumer):
        """Test that interpolation qualifiers are carried into the producer."""
        vertex = stage()
        fragment = consumer(
            _in("int", "id", qualifiers=(InterpolationQualifier("flat"),)), reads=("id",)
        )

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "flat out int id;\n"
            "void main() {\n"
            "    id = 0;\n"
            "}\n"
        )

    def test_each_member_is_patched(self, stage, consumer):
        """Test that every member of a multi-member input is patched on its own."""
        vertex = stage()
        fragment = consumer(_in("vec2", "uv", "lightmap"), reads=("uv", "lightmap"))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "out vec2 lightmap;\n"
            "out vec2 uv;\n"
            "void main() {\n"
            "    lightmap = vec2(0.0);\n"
            "    uv = vec2(0.0);\n"
            "}\n"
        )

    def test_unused_input_is_ignored(self, stage, consumer, warnings):
        """Test that inputs that are never read need no producer."""
        vertex = stage()
        fragment = consumer(_in("float", "unusedInput"), reads=(1.0,))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before
        assert warnings == []

    def test_non_numeric_input(self, stage, consumer, warnings):
        """Test that inputs of struct type are reported but not patched."""
        vertex = stage()
        fragment = consumer(_in("Material", "mat"), reads=(build.member("mat", "albedo"),))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before
        assert len(warnings) == 1
        assert "non-numeric type and could not be compatibility-patched" in warnings[0]

    def test_missing_entry_function(self, consumer):
        """Test that a producer without an entry function is a fatal error."""
        vertex = Document(TranslationUnit([]))
        fragment = consumer(_in("float", "foo"), reads=("foo",))

        with pytest.raises(MissingNodeError):
            reconcile({VERTEX: vertex, FRAGMENT: fragment})


class TestMatchingTypes:
    """Tests for outputs with the type the consumer expects."""

    def test_unwritten_output_is_initialized(self, stage, consumer, warnings):
        """Test that a declared but never written output gets a zero write."""
        vertex = stage(_out("vec2", "uv"))
        fragment = consumer(_in("vec2", "uv"), reads=("uv",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "out vec2 uv;\n"
            "void main() {\n"
            "    uv = vec2(0.0);\n"
            "}\n"
        )
        assert warnings == []

    def test_unread_input_leaves_unwritten_output(self, stage, consumer, warnings):
        """Test that an output is not initialized for an input that is never read."""
        vertex = stage(_out("vec2", "uv"))
        fragment = consumer(_in("vec2", "uv"), reads=(1.0,))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before
        assert warnings == []

    def test_written_output_is_untouched(self, stage, consumer):
        """Test that nothing happens when the interface already agrees."""
        vertex = stage(_out("vec2", "uv"), body=[build.assign("uv", build.call("vec2", 1.0))])
        fragment = consumer(_in("vec2", "uv"), reads=("uv",))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before

    def test_same_named_types(self, stage, consumer, warnings):
        """Test that matching struct types are accepted silently."""
        vertex = stage(_out("Material", "mat"))
        fragment = consumer(_in("Material", "mat"), reads=(build.member("mat", "albedo"),))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert warnings == []

    def test_different_named_types(self, stage, consumer, warnings):
        """Test that a struct type mismatch is reported."""
        vertex = stage(_out("Material", "mat"))
        fragment = consumer(_in("Light", "mat"), reads=(build.member("mat", "albedo"),))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before
        assert len(warnings) == 1
        assert "non-numeric type that differs" in warnings[0]


class TestTypeMismatch:
    """Tests for outputs whose type differs from the consumer's."""

    def test_alias_swap(self, stage, consumer, warnings):
        """Test that a narrower output is retyped and fed from an internal alias."""
        # Arrange
        vertex = stage(
            _out("vec3", "normal"), body=[build.assign("normal", build.call("vec3", 1.0))]
        )
        fragment = consumer(_in("vec4", "normal"), reads=("normal",))

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == (
            "vec3 iris_template_normal;\n"
            "out vec4 normal;\n"
            "void main() {\n"
            "    iris_template_normal = vec3(1.0);\n"
            "    normal = vec4(iris_template_normal, 0.0);\n"
            "}\n"
        )
        assert warnings == [
            "The out declaration 'normal' in the VERTEX shader has a different type vec3 "
            "than the corresponding in declaration of type vec4 in the following stage "
            "FRAGMENT and has been compatibility-patched."
        ]

    def test_unread_input_is_not_swapped(self, stage, consumer, warnings):
        """Test that a type mismatch with an input that is never read is left alone."""
        # Arrange
        vertex = stage(
            _out("vec3", "normal"), body=[build.assign("normal", build.call("vec3", 1.0))]
        )
        fragment = consumer(_in("vec4", "normal"), reads=(1.0,))
        before = print_document(vertex)

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == before
        assert vertex.lookup("iris_template_normal") == set()
        assert warnings == []

    def test_alias_swap_splits_multi_member_declaration(self, stage, consumer):
        """Test that only the mismatched member changes type."""
        vertex = stage(
            _out("vec3", "normal", "tangent"),
            body=[
                build.assign("normal", build.call("vec3", 1.0)),
                build.assign("tangent", build.call("vec3", 0.0)),
            ],
        )
        fragment = consumer(_in("vec4", "normal"), reads=("normal",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "vec3 iris_template_normal;\n"
            "out vec4 normal;\n"
            "out vec3 tangent;\n"
            "void main() {\n"
            "    iris_template_normal = vec3(1.0);\n"
            "    tangent = vec3(0.0);\n"
            "    normal = vec4(iris_template_normal, 0.0);\n"
            "}\n"
        )

    def test_element_type_change(self, stage, consumer):
        """Test converting an integer output to the float input."""
        vertex = stage(_out("int", "level"), body=[build.assign("level", 2)])
        fragment = consumer(_in("float", "level"), reads=("level",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "int iris_template_level;\n"
            "out float level;\n"
            "void main() {\n"
            "    iris_template_level = 2;\n"
            "    level = float(iris_template_level);\n"
            "}\n"
        )

    def test_custom_tag_prefix(self, stage, consumer):
        """Test that the alias uses the configured prefix."""
        vertex = stage(_out("vec3", "normal"), body=[build.assign("normal", "n")])
        fragment = consumer(_in("vec4", "normal"), reads=("normal",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment}, CompatConfig(tag_prefix="compat_"))

        assert "vec3 compat_normal;\n" in print_document(vertex)

    def test_rerun_bails_on_alias_prefix(self, stage, consumer, warnings):
        """Test that patched stages are recognized by their aliases and left alone."""
        # Arrange
        vertex = stage(_out("vec3", "normal"), body=[build.assign("normal", "n")])
        fragment = consumer(_in("vec4", "normal"), reads=("normal",))
        reconcile({VERTEX: vertex, FRAGMENT: fragment})
        patched = print_document(vertex)
        warnings.clear()

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == patched
        assert warnings == [
            "The prefix tag iris_template_ is used in the shader, "
            "bailing compatibility transformation."
        ]

    def test_wider_vector_is_left_alone(self, stage, consumer, warnings):
        """Test that an output with more components than the input is only reported."""
        # Arrange
        vertex = stage(_out("vec4", "color"), body=[build.assign("color", build.call("vec4", 1.0))])
        fragment = consumer(_in("vec3", "color"), reads=("color",))
        vertex_before = print_document(vertex)
        fragment_before = print_document(fragment)

        # Act
        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == vertex_before
        assert print_document(fragment) == fragment_before
        assert len(warnings) == 1
        assert "could not be compatibility-patched" in warnings[0]

    def test_dimensionality_mismatch(self, stage, consumer, warnings):
        """Test that scalar to vector mismatches are only reported."""
        vertex = stage(_out("float", "fog"), body=[build.assign("fog", 1.0)])
        fragment = consumer(_in("vec3", "fog"), reads=("fog",))
        before = print_document(vertex)

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == before
        assert len(warnings) == 1
        assert "mismatching dimensionality" in warnings[0]


class TestVarying:
    """Tests for legacy varying declarations."""

    def test_varying_alias_swap(self, stage, consumer):
        """Test that varying outputs are retyped like out declarations."""
        vertex = stage(
            _varying("vec3", "normal"), body=[build.assign("normal", build.call("vec3", 1.0))]
        )
        fragment = consumer(_varying("vec4", "normal"), reads=("normal",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex) == (
            "vec3 iris_template_normal;\n"
            "varying vec4 normal;\n"
            "void main() {\n"
            "    iris_template_normal = vec3(1.0);\n"
            "    normal = vec4(iris_template_normal, 0.0);\n"
            "}\n"
        )

    def test_missing_varying(self, stage, consumer):
        """Test that a missing varying input is declared varying in the producer."""
        vertex = stage()
        fragment = consumer(_varying("float", "fog"), reads=("fog",))

        reconcile({VERTEX: vertex, FRAGMENT: fragment})

        assert print_document(vertex).startswith("varying float fog;\n")


class TestPipelineStages:
    """Tests for pairing stages along the pipeline."""

    def test_geometry_stage_is_the_producer(self, stage, consumer):
        """Test that fragment inputs are patched into the geometry stage."""
        # Arrange
        vertex = stage(_out("vec3", "vnormal"), body=[build.assign("vnormal", build.call("vec3", 1.0))])
        geometry = stage(
            build.global_declaration(
                "vec3", "vnormal", qualifiers=(StorageType.IN,), unsized_array=True
            ),
            _out("float", "depth"),
            body=[build.assign("depth", 1.0)],
        )
        fragment = consumer(_in("float", "depth", "fog"), reads=("depth", "fog"))
        vertex_before = print_document(vertex)

        # Act
        reconcile({VERTEX: vertex, GEOMETRY: geometry, FRAGMENT: fragment})

        # Assert
        assert print_document(vertex) == vertex_before
        assert print_document(geometry) == (
            "out float fog;\n"
            "in vec3 vnormal[];\n"
            "out float depth;\n"
            "void main() {\n"
            "    fog = 0.0;\n"
            "    depth = 1.0;\n"
            "}\n"
        )

    def test_absent_stage_is_skipped(self, stage, consumer):
        """Test that a missing geometry stage pairs vertex with fragment."""
        vertex = stage()
        fragment = consumer(_in("float", "fog"), reads=("fog",))

        reconcile({VERTEX: vertex, GEOMETRY: None, FRAGMENT: fragment})

        assert "out float fog;" in print_document(vertex)

    def test_single_stage(self, consumer, warnings):
        """Test that a lone stage has nothing to reconcile."""
        fragment = consumer(_in("float", "fog"), reads=("fog",))
        before = print_document(fragment)

        reconcile({FRAGMENT: fragment})

        assert print_document(fragment) == before
        assert warnings == []


class TestPatchPipeline:
    """Tests for normalizing and reconciling a whole program."""

    def test_patch_pipeline(self, stage, consumer):
        """Test that stages are normalized before their interfaces are reconciled."""
        # Arrange
        vertex = stage(
            _out("vec3", "normal"),
            build.function("float", "unused", body=[build.returns(1.0)]),
            body=[build.assign("normal", build.call("vec3", 1.0))],
            version="330 core",
        )
        fragment = consumer(_in("vec4", "normal"), reads=("normal",))

        # Act
        sources = patch_pipeline({VERTEX: vertex, FRAGMENT: fragment})

        # Assert
        assert sources[VERTEX] == (
            "#version 330 core\n"
            "vec3 iris_template_normal;\n"
            "out vec4 normal;\n"
            "void main() {\n"
            "    iris_template_normal = vec3(1.0);\n"
            "    normal = vec4(iris_template_normal, 0.0);\n"
            "}\n"
        )
        assert sources[FRAGMENT] == print_document(fragment)
