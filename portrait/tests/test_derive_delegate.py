"""Tests for the derive_delegate field-delegation generator.

Tests cover:
- Struct and enum receivers destructured into per-field bindings
- Return value aggregation (single field, unit, Self, reduce, failure)
- Fallible propagation with `try`
- Self-typed parameters
- Where-predicates added for generic inputs
"""

import pytest

from portrait.core.ast_parser import get_parser
from portrait.core.errors import (
    AggregationError,
    ArgumentParseError,
    ShapeRestrictionError,
    UnsupportedItemError,
)
from portrait.core.framework import complete_derive
from portrait.core.generators import DeriveDelegateGenerator
from portrait.core.generators.derive_delegate import is_self_ty, trait_fn_path, try_payload_type
from portrait.core.transport import CaptureOptions, capture


# =========================================================================
# Sample Rust source fixtures
# =========================================================================

TOUCH_TRAIT = '''
trait Touch {
    fn touch(&mut self, n: u32);
}
'''

GET_TRAIT = '''
trait Get {
    fn get(&self) -> i32;
}
'''

CLONE_TRAIT = '''
trait MyClone {
    fn my_clone(&self) -> Self;
}
'''

EQ_TRAIT = '''
trait MyEq {
    #[portrait(derive_delegate(reduce = |a, b| a && b))]
    fn my_eq(&self, other: &Self) -> bool;
}
'''

SUM_TRAIT = '''
trait Size {
    #[portrait(derive_delegate(reduce = ::core::ops::Add::add, reduce_base = 0))]
    fn size(&self) -> usize;
}
'''

TRY_TRAIT = '''
trait Load {
    #[portrait(derive_delegate(try))]
    fn load(&mut self) -> Result<(), Error>;

    #[portrait(derive_delegate(try = Some))]
    fn first(&self) -> Option<Self>;
}
'''

PRINT_TRAIT = '''
trait Print {
    fn print(&self);
}
'''

THREE_FIELDS = '''
struct Triple {
    a: A,
    b: B,
    c: C,
}
'''

PAIR = '''
struct Pair {
    left: L,
    right: R,
}
'''


def _derive(trait_text, input_text, trait_path=None):
    trait = get_parser().parse_trait(trait_text)
    input = get_parser().parse_type_decl(input_text)
    return complete_derive(trait_path or trait.name, trait.members, input, DeriveDelegateGenerator()).render()


# =========================================================================
# Tests: Structs
# =========================================================================

class TestStructs:
    def test_single_field_returns_the_call(self):
        rendered = _derive(GET_TRAIT, "struct Wrapper { inner: Inner }")
        assert rendered == (
            "impl Get for Wrapper {\n"
            "    fn get(&self) -> i32 {\n"
            "        let Self { inner: __portrait_self_0 } = self;\n"
            "        Get::get(__portrait_self_0)\n"
            "    }\n"
            "}"
        )

    def test_single_field_ignores_return_type(self):
        rendered = _derive(CLONE_TRAIT, "struct Wrapper(Inner);")
        assert "let Self { 0: __portrait_self_0 } = self;" in rendered
        assert "MyClone::my_clone(__portrait_self_0)\n" in rendered
        assert "Self {" not in rendered.split("= self;")[1]

    def test_unit_return_calls_every_field(self):
        rendered = _derive(TOUCH_TRAIT, THREE_FIELDS)
        assert "let Self { a: __portrait_self_0, b: __portrait_self_1, c: __portrait_self_2 } = self;" in rendered
        for i in range(3):
            assert f"Touch::touch(__portrait_self_{i}, n);" in rendered
        assert rendered.count("Touch::touch(") == 3

    def test_self_return_reconstructs(self):
        rendered = _derive(CLONE_TRAIT, PAIR)
        assert (
            "Self { left: MyClone::my_clone(__portrait_self_0), right: MyClone::my_clone(__portrait_self_1) }"
            in rendered
        )

    def test_reduce_from_first_result(self):
        rendered = _derive(EQ_TRAIT, PAIR)
        left = "MyEq::my_eq(__portrait_self_0, { let Self { left: __portrait_other, .. } = other; __portrait_other })"
        right = "MyEq::my_eq(__portrait_self_1, { let Self { right: __portrait_other, .. } = other; __portrait_other })"
        assert f"(|a, b| a && b)({left}, {right})" in rendered

    def test_reduce_with_base(self):
        rendered = _derive(SUM_TRAIT, PAIR)
        assert (
            "(::core::ops::Add::add)((::core::ops::Add::add)(0, Size::size(__portrait_self_0)), "
            "Size::size(__portrait_self_1))"
        ) in rendered

    def test_reduce_empty_struct_without_base(self):
        with pytest.raises(AggregationError, match="not applicable for empty structs"):
            _derive(EQ_TRAIT, "struct Empty {}")

    def test_reduce_empty_struct_with_base(self):
        rendered = _derive(SUM_TRAIT, "struct Empty {}")
        assert "let Self {} = self;" in rendered
        assert "        0\n" in rendered

    def test_unresolved_aggregation(self):
        trait = "trait Count { fn count(&self) -> usize; }"
        with pytest.raises(AggregationError, match="Cannot determine how to aggregate the return value `usize`"):
            _derive(trait, PAIR)

    def test_associated_function_without_receiver(self):
        rendered = _derive("trait Make { fn make() -> Self; }", PAIR)
        assert "= self;" not in rendered
        assert "Self { left: Make::make(), right: Make::make() }" in rendered

    def test_cfg_fields(self):
        rendered = _derive(TOUCH_TRAIT, 'struct S { #[cfg(feature = "a")] a: A, b: B }')
        assert 'let Self { #[cfg(feature = "a")] a: __portrait_self_0, b: __portrait_self_1 } = self;' in rendered
        assert '#[cfg(feature = "a")] Touch::touch(__portrait_self_0, n);' in rendered

    def test_non_identifier_pattern(self):
        trait = "trait Pairs { fn set(&mut self, (a, b): (u8, u8)); }"
        with pytest.raises(ArgumentParseError, match="non-identifier-pattern"):
            _derive(trait, PAIR)


# =========================================================================
# Tests: Fallible propagation
# =========================================================================

class TestTry:
    def test_wraps_in_ok(self):
        trait = get_parser().parse_trait(TRY_TRAIT)
        input = get_parser().parse_type_decl(PAIR)
        rendered = complete_derive("Load", trait.members[:1], input, DeriveDelegateGenerator()).render()

        assert "Ok({" in rendered
        assert "Load::load(__portrait_self_0)?;" in rendered
        assert "Load::load(__portrait_self_1)?;" in rendered

    def test_custom_constructor(self):
        trait = get_parser().parse_trait(TRY_TRAIT)
        input = get_parser().parse_type_decl(PAIR)
        rendered = complete_derive("Load", trait.members[1:], input, DeriveDelegateGenerator()).render()

        assert "Some({" in rendered
        assert "Self { left: Load::first(__portrait_self_0)?, right: Load::first(__portrait_self_1)? }" in rendered

    def test_requires_generic_return(self):
        trait = "trait Bad { #[portrait(derive_delegate(try))] fn f(&self) -> i32; }"
        with pytest.raises(AggregationError, match="`try` must be used"):
            _derive(trait, PAIR)

    def test_payload_type(self):
        assert try_payload_type("Result<Vec<u8>, Error>") == "Vec<u8>"
        assert try_payload_type("Option<()>") == "()"
        with pytest.raises(AggregationError):
            try_payload_type("(u8, u8)")

    def test_duplicate_key(self):
        trait = "trait Bad { #[portrait(derive_delegate(try, try))] fn f(&self) -> Option<()>; }"
        with pytest.raises(ArgumentParseError, match="cannot be set twice"):
            _derive(trait, PAIR)

    def test_unknown_key(self):
        trait = "trait Bad { #[portrait(derive_delegate(fold = f))] fn f(&self); }"
        with pytest.raises(ArgumentParseError, match="unexpected argument `fold`"):
            _derive(trait, PAIR)


# =========================================================================
# Tests: Enums
# =========================================================================

class TestEnums:
    def test_one_arm_per_variant(self):
        rendered = _derive(PRINT_TRAIT, "enum E { A(i32), B(String) }")
        assert "match self {" in rendered
        assert "Self::A { 0: __portrait_self_0, .. } => {" in rendered
        assert "Self::B { 0: __portrait_self_0, .. } => {" in rendered
        assert rendered.count("Print::print(__portrait_self_0)") == 2

    def test_unit_and_named_variants(self):
        rendered = _derive(TOUCH_TRAIT, "enum E { Empty, Named { x: X, y: Y } }")
        assert "Self::Empty { .. } => {}," in rendered
        assert "Self::Named { x: __portrait_self_0, y: __portrait_self_1, .. } => {" in rendered
        assert "Touch::touch(__portrait_self_1, n);" in rendered

    def test_self_return_per_variant(self):
        rendered = _derive(CLONE_TRAIT, "enum E { P { a: A, b: B } }")
        assert "Self::P { a: MyClone::my_clone(__portrait_self_0), b: MyClone::my_clone(__portrait_self_1) }" in rendered

    def test_cfg_variant(self):
        rendered = _derive(PRINT_TRAIT, "enum E { #[cfg(unix)] A(i32), B(u8) }")
        assert "#[cfg(unix)]\n" in rendered
        assert rendered.index("#[cfg(unix)]") < rendered.index("Self::A")

    def test_receiver_required(self):
        with pytest.raises(ShapeRestrictionError, match="without receivers"):
            _derive("trait Make { fn make() -> Self; }", "enum E { A(i32) }")

    def test_self_parameter_rejected(self):
        trait = "trait Merge { fn merge(&mut self, other: Self); }"
        with pytest.raises(ShapeRestrictionError, match="only supported for structs"):
            _derive(trait, "enum E { A(i32), B(u8) }")


# =========================================================================
# Tests: Capabilities and generics
# =========================================================================

class TestCapabilities:
    def test_const_rejected(self):
        with pytest.raises(UnsupportedItemError, match="does not support const items"):
            _derive("trait C { const N: u8; }", PAIR)

    def test_type_rejected(self):
        with pytest.raises(UnsupportedItemError, match="does not support type items"):
            _derive("trait T { type Out; }", PAIR)

    def test_union_rejected(self):
        with pytest.raises(UnsupportedItemError, match="unions"):
            _derive(PRINT_TRAIT, "union U { a: u32, b: f32 }")

    def test_args_rejected(self):
        with pytest.raises(ArgumentParseError):
            DeriveDelegateGenerator.from_args("anything")


class TestGenerics:
    def test_field_predicates(self):
        rendered = _derive(PRINT_TRAIT, "struct G<T, U = u8> { a: T, b: Vec<T>, c: T, u: U }")
        assert rendered.startswith(
            "impl<T, U> Print for G<T, U>\nwhere\n    T: Print,\n    Vec<T>: Print,\n    U: Print,\n{"
        )

    def test_enum_predicates_cover_all_variants(self):
        rendered = _derive(PRINT_TRAIT, "enum E<T> where T: Clone { A(T), B(Box<T>) }")
        assert "where\n    T: Clone,\n    T: Print,\n    Box<T>: Print,\n{" in rendered

    def test_not_generic(self):
        rendered = _derive(PRINT_TRAIT, PAIR)
        assert "where" not in rendered

    def test_generic_trait_called_with_turbofish(self):
        rendered = _derive("trait Conv<T> { fn conv(&self); }", "struct S { a: A }", trait_path="Conv<u8>")
        assert "impl Conv<u8> for S {" in rendered
        assert "Conv::<u8>::conv(__portrait_self_0)" in rendered

    def test_cfg_on_input_is_carried(self):
        rendered = _derive(PRINT_TRAIT, "#[cfg(test)]\n#[derive(Debug)]\nstruct S { a: A }")
        assert rendered.startswith("#[cfg(test)]\nimpl Print for S {")


# =========================================================================
# Tests: Helpers and payload entry point
# =========================================================================

class TestHelpers:
    def test_is_self_ty(self):
        assert is_self_ty("Self")
        assert is_self_ty("&Self")
        assert is_self_ty("&'a mut Self")
        assert not is_self_ty("SelfRef")
        assert not is_self_ty("Box<Self>")
        assert not is_self_ty(None)

    def test_trait_fn_path(self):
        assert trait_fn_path("Foo", "f") == "Foo::f"
        assert trait_fn_path("a::Foo<T>", "f") == "a::Foo::<T>::f"
        assert trait_fn_path("Foo::<T>", "f") == "Foo::<T>::f"

    def test_entry_point(self):
        from portrait.core.generators import derive_delegate

        template = capture(get_parser().parse_trait(PRINT_TRAIT), CaptureOptions())
        rendered = template.invoke(derive_delegate, "", trait_path="Print", input_text="struct S { a: A, b: B }")
        assert rendered.startswith("impl Print for S {")
        assert "Print::print(__portrait_self_1);" in rendered
