"""Tests for portrait capture, template invocation and scope resolution."""

from unittest.mock import Mock

import pytest

from portrait.core.ast_parser import MemberKind, get_parser
from portrait.core.errors import ArgumentParseError, UnresolvedPortraitError
from portrait.core.framework import ImplFiller, complete_impl, impl_filler
from portrait.core.generators import DefaultGenerator
from portrait.core.transport import (
    CaptureOptions,
    CompanionScope,
    ImportCollector,
    PortraitScope,
    capture,
    companion_name,
    import_visibility,
)


# =========================================================================
# Sample Rust source fixtures
# =========================================================================

FOO_TRAIT = '''
trait Foo {
    const BAR: i32;
    fn qux(&mut self) -> u32;
    type Grault<U>;
}
'''

ANNOTATED_TRAIT = '''
pub trait Annotated {
    #[portrait(derive_delegate(try))]
    fn load(&mut self) -> Result<(), Error>;
}
'''

IMPORTING_TRAIT = '''
pub trait Store<S> {
    fn get(&self, key: Key) -> Option<Value>;
    fn reader(&self, s: S) -> io::Result<()>;
    fn absolute(&self) -> ::core::fmt::Error;
    fn convert<T: Into<u8>>(&self, t: T) -> Self;
    type Iter<'a>: Iterator<Item = &'a Entry>;
}
'''


class RecordingFiller(ImplFiller):
    """Records what the template delivered and emits nothing of interest."""

    def __init__(self):
        self.calls = []

    def fill(self, portrait, args, item_impl):
        self.calls.append((portrait, args, item_impl))
        return "impl Foo for Corge {}"


def _capture(text=FOO_TRAIT, **options):
    return capture(get_parser().parse_trait(text), CaptureOptions(**options))


# =========================================================================
# Tests: Capture
# =========================================================================

class TestCapture:
    def test_items_verbatim_in_order(self):
        template = _capture()
        assert template.trait_name == "Foo"
        assert template.items == ["const BAR: i32;", "fn qux(&mut self) -> u32;", "type Grault<U>;"]

    def test_helper_attributes_are_kept(self):
        template = _capture(ANNOTATED_TRAIT)
        assert template.items[0].startswith("#[portrait(derive_delegate(try))]")

    def test_alias_is_random(self):
        first, second = _capture(), _capture()
        assert first.alias.startswith("portrait_items_")
        assert first.alias != second.alias

    def test_companion_name_is_deterministic(self):
        first, second = _capture(), _capture()
        assert first.companion.name == second.companion.name == "foo_portrait"
        assert companion_name("HttpService") == "http_service_portrait"

    def test_companion_name_override(self):
        assert _capture(name="custom").companion.name == "custom"

    def test_explicit_imports(self):
        template = _capture(imports=["std::io", "super::Thing"])
        assert template.companion.imports == ["std::io", "super::Thing"]


# =========================================================================
# Tests: Round trip through the template
# =========================================================================

class TestInvoke:
    def test_round_trip(self):
        template = _capture()
        recorder = RecordingFiller()

        output = template.invoke(
            lambda payload: impl_filler(payload, recorder),
            "some(args)",
            impl_text="impl Foo for Corge {}",
        )

        assert output == "impl Foo for Corge {}"
        assert len(recorder.calls) == 1
        portrait, args, item_impl = recorder.calls[0]
        assert [m.source for m in portrait] == template.items
        assert [m.kind for m in portrait] == [MemberKind.CONST, MemberKind.FN, MemberKind.TYPE]
        assert args == "some(args)"
        assert item_impl.self_ty == "Corge"

    def test_payload_shape(self):
        template = _capture()
        target = Mock(return_value="done")

        assert template.invoke(target, "", impl_text="impl Foo for Corge {}", debug_print=True) == "done"
        payload = target.call_args[0][0]
        assert payload.startswith("TRAIT_PORTRAIT { {const BAR: i32;} {fn qux(&mut self) -> u32;} {type Grault<U>;} }")
        assert "IMPL { impl Foo for Corge {} }" in payload
        assert payload.endswith("DEBUG_PRINT_FILLER_OUTPUT { true }")
        assert "TRAIT_PATH" not in payload
        assert template.alias not in payload

    def test_derive_payload(self):
        target = Mock(return_value="")
        _capture().invoke(target, "x", trait_path="crate::Foo", input_text="struct S;")
        payload = target.call_args[0][0]
        assert "TRAIT_PATH { crate::Foo }" in payload
        assert "INPUT { struct S; }" in payload
        assert payload.index("TRAIT_PATH") < payload.index("ARGS") < payload.index("INPUT")

    def test_exactly_one_target_item(self):
        template = _capture()
        with pytest.raises(ValueError):
            template.payload("", impl_text="impl Foo for A {}", input_text="struct A;", trait_path="Foo")
        with pytest.raises(ValueError):
            template.payload("")
        with pytest.raises(ValueError):
            template.payload("", input_text="struct A;")

    def test_alias_does_not_affect_output(self):
        impl_text = "impl Foo for Corge { type Grault<U> = (); }"

        def fill_default(payload):
            return impl_filler(payload, DefaultFiller())

        first = _capture().invoke(fill_default, "", impl_text=impl_text)
        second = _capture().invoke(fill_default, "", impl_text=impl_text)
        assert first == second


class DefaultFiller(ImplFiller):
    def fill(self, portrait, args, item_impl):
        return complete_impl(portrait, item_impl, DefaultGenerator()).render()


# =========================================================================
# Tests: Rust-side rendering
# =========================================================================

class TestRender:
    def test_private_trait(self):
        template = _capture()
        rendered = template.render()
        assert f"macro_rules! {template.alias} {{" in rendered
        assert f"use {template.alias} as Foo;" in rendered
        assert "#[macro_export]" not in rendered
        assert "mod foo_portrait {" in rendered
        assert "pub mod imports {}" in rendered

    def test_public_trait_is_exported(self):
        template = _capture(ANNOTATED_TRAIT)
        rendered = template.render()
        assert "#[doc(hidden)]\n#[macro_export]\nmacro_rules!" in rendered
        assert f"pub use {template.alias} as Annotated;" in rendered
        assert "pub mod annotated_portrait {" in rendered

    def test_both_arms_carry_the_portrait(self):
        rendered = _capture().render()
        assert rendered.count("TRAIT_PORTRAIT { {const BAR: i32;} {fn qux(&mut self) -> u32;} {type Grault<U>;} }") == 2

    def test_companion_scope(self):
        scope = CompanionScope(
            name="foo_portrait",
            visibility="pub(crate)",
            import_visibility="pub(crate)",
            imports=["super::super::Bar"],
        )
        assert scope.render() == (
            "#[allow(non_snake_case)]\n"
            "pub(crate) mod foo_portrait {\n"
            "    pub mod imports {\n"
            "        pub(crate) use super::super::Bar;\n"
            "    }\n"
            "}"
        )


# =========================================================================
# Tests: Import visibility
# =========================================================================

class TestImportVisibility:
    @pytest.mark.parametrize("visibility, expected", [
        ("", "pub(in super::super)"),
        ("pub(self)", "pub(in super::super)"),
        ("pub", "pub"),
        ("pub(super)", "pub(in super::super::super)"),
        ("pub(crate)", "pub(crate)"),
        ("pub(in crate::a)", "pub(in crate::a)"),
    ])
    def test_mapping(self, visibility, expected):
        assert import_visibility(visibility) == expected

    def test_invalid(self):
        with pytest.raises(ArgumentParseError, match="invalid visibility scope"):
            import_visibility("pub(nowhere)")


# =========================================================================
# Tests: Auto imports
# =========================================================================

class TestAutoImports:
    def test_collects_relative_roots(self):
        trait = get_parser().parse_trait(IMPORTING_TRAIT)
        collector = ImportCollector(p.name for p in trait.generics)
        collector.visit_members(trait.members)
        assert set(collector.idents) == {"Key", "Value", "io", "Entry"}

    def test_capture_with_auto_imports(self):
        template = _capture(IMPORTING_TRAIT, auto_imports=True, imports=["std::fmt"])
        assert template.companion.imports[0] == "std::fmt"
        assert "super::super::Key" in template.companion.imports
        assert "super::super::S" not in template.companion.imports
        assert template.companion.import_visibility == "pub"

    def test_disabled_by_default(self):
        assert _capture(IMPORTING_TRAIT).companion.imports == []


# =========================================================================
# Tests: Session scope
# =========================================================================

class TestPortraitScope:
    def test_resolve_by_path(self):
        scope = PortraitScope()
        foo = _capture()
        scope.add(foo, "a::b")

        assert scope.resolve("a::b::Foo") is foo
        assert scope.resolve("crate::a::b::Foo") is foo
        assert scope.resolve("b::Foo", "a") is foo
        assert scope.resolve("Foo<T>") is foo
        assert "Foo" in scope
        assert scope.names() == ["a::b::Foo"]

    def test_module_local_wins(self):
        scope = PortraitScope()
        outer, inner = _capture(), _capture()
        scope.add(outer, "")
        scope.add(inner, "m")

        assert scope.resolve("Foo", "m") is inner
        assert scope.resolve("Foo", "") is outer
        assert scope.resolve("Foo", "other") is outer
        assert scope.resolve("super::Foo", "m") is outer
        assert scope.resolve("crate::m::Foo", "other") is inner

    def test_ambiguous_last_segment(self):
        scope = PortraitScope()
        scope.add(_capture(), "a")
        scope.add(_capture(), "b")

        with pytest.raises(UnresolvedPortraitError, match="ambiguous"):
            scope.resolve("Foo", "c")

    def test_unresolved(self):
        with pytest.raises(UnresolvedPortraitError, match="cannot find a portrait for `Missing`"):
            PortraitScope().resolve("Missing")
        assert "Missing" not in PortraitScope()

    def test_defined_twice(self):
        scope = PortraitScope()
        scope.add(_capture(), "")
        with pytest.raises(ArgumentParseError, match="defined multiple times"):
            scope.add(_capture(), "")
