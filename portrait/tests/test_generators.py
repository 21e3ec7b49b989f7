"""Tests for the default, delegate and log generators and the filler registry."""

import pytest

from portrait.core.ast_parser import get_parser
from portrait.core.errors import ArgumentParseError, UnsupportedItemError
from portrait.core.framework import complete_impl
from portrait.core.generators import (
    DefaultGenerator,
    DelegateGenerator,
    FillerRegistry,
    LogGenerator,
)
from portrait.core.generators.delegate import DelegateArgs
from portrait.core.generators.log import LogArgs


# =========================================================================
# Sample Rust source fixtures
# =========================================================================

SETTINGS_TRAIT = '''
trait Settings {
    const LIMIT: usize;
    #[cfg(feature = "names")]
    fn name(&self) -> String;
    fn set_limit(&mut self, mut limit: usize, _unused: bool) -> bool;
}
'''

NAMED_TRAIT = '''
trait Named {
    const KIND: u8;
    fn name(&self) -> String;
    fn rename(&mut self, mut name: String);
    fn into_name(self) -> String;
    fn boxed(self: Box<Self>) -> String;
    fn create(id: u32) -> Self;
    type Out<T>: Clone where T: Copy;
}
'''

EVENTS_TRAIT = '''
trait Events {
    fn opened(&self, path: &str, mode: u32);
    fn closed(&mut self);
    fn flagged(&self, #[cfg(feature = "flags")] flag: u8) -> Self::Ret;
    type Ret;
}
'''


def _complete(trait_text, generator, impl_text=None):
    trait = get_parser().parse_trait(trait_text)
    impl_block = get_parser().parse_impl(impl_text or f"impl {trait.name} for Thing {{}}")
    return complete_impl(trait.members, impl_block, generator).render()


# =========================================================================
# Tests: default
# =========================================================================

class TestDefault:
    def test_members(self):
        rendered = _complete(SETTINGS_TRAIT, DefaultGenerator())
        assert "const LIMIT: usize = Default::default();" in rendered
        assert (
            "fn set_limit(&mut self, #[allow(unused_variables)] mut limit: usize, "
            "#[allow(unused_variables)] _unused: bool) -> bool {\n"
            "        Default::default()\n"
            "    }"
        ) in rendered

    def test_cfg_attrs_copied(self):
        rendered = _complete(SETTINGS_TRAIT, DefaultGenerator())
        assert '    #[cfg(feature = "names")]\n    fn name(&self) -> String {' in rendered

    def test_type_rejected(self):
        with pytest.raises(UnsupportedItemError, match="cannot implement associated types automatically"):
            _complete("trait T { type Out; }", DefaultGenerator())

    def test_no_arguments(self):
        with pytest.raises(ArgumentParseError):
            DefaultGenerator.from_args("x")


# =========================================================================
# Tests: delegate
# =========================================================================

class TestDelegate:
    def test_args(self):
        args = DelegateArgs.parse("HashMap<K, V>; self.map")
        assert args.ty == "HashMap<K, V>"
        assert args.value == "self.map"
        assert DelegateArgs.parse("Inner").value is None

    def test_args_errors(self):
        with pytest.raises(ArgumentParseError):
            DelegateArgs.parse("")
        with pytest.raises(ArgumentParseError, match="unexpected tokens"):
            DelegateArgs.parse("A; b; c")

    def test_members(self):
        rendered = _complete(NAMED_TRAIT, DelegateGenerator.from_args("Inner; self.inner"))
        assert "const KIND: u8 = <Inner as Named>::KIND;" in rendered
        assert "#[inline]\n    fn name(&self) -> String {\n        <Inner as Named>::name(&self.inner)\n    }" in rendered
        assert "<Inner as Named>::rename(&mut self.inner, name)" in rendered
        assert "fn rename(&mut self, mut name: String)" in rendered
        assert "<Inner as Named>::into_name(self.inner)" in rendered
        assert "<Inner as Named>::boxed(self.inner)" in rendered
        assert "<Inner as Named>::create(id)" in rendered
        assert "type Out<T> = <Inner as Named>::Out<T> where T: Copy;" in rendered

    def test_receiver_needs_value(self):
        with pytest.raises(UnsupportedItemError, match="Delegate value must be passed"):
            _complete(NAMED_TRAIT, DelegateGenerator.from_args("Inner"))

    def test_static_members_without_value(self):
        trait = "trait New { const N: u8; fn new() -> Self; }"
        rendered = _complete(trait, DelegateGenerator.from_args("Inner"))
        assert "<Inner as New>::new()" in rendered


# =========================================================================
# Tests: log
# =========================================================================

class TestLog:
    def test_args(self):
        args = LogArgs.parse("println")
        assert (args.logger, args.ret_ty, args.args) == ("println", None, [])

        args = LogArgs.parse('log::info, target: "app"')
        assert args.logger == "log::info"
        assert args.args == ['target: "app"']

        args = LogArgs.parse("writeln -> std::fmt::Result, f")
        assert args.ret_ty == "std::fmt::Result"
        assert args.args == ["f"]

    def test_args_errors(self):
        with pytest.raises(ArgumentParseError):
            LogArgs.parse("")
        with pytest.raises(ArgumentParseError):
            LogArgs.parse("println extra")

    def test_members(self):
        rendered = _complete(EVENTS_TRAIT, LogGenerator.from_args("println"))
        assert 'println!("opened({:?}, {:?})", path, mode)' in rendered
        assert 'println!("closed()")' in rendered
        assert "type Ret = ();" in rendered

    def test_leading_args_and_return_type(self):
        rendered = _complete(EVENTS_TRAIT, LogGenerator.from_args("write -> ::std::fmt::Result, f"))
        assert 'write!(f, "opened({:?}, {:?})", path, mode)' in rendered
        assert "type Ret = ::std::fmt::Result;" in rendered

    def test_cfg_parameter_guarded(self):
        rendered = _complete(EVENTS_TRAIT, LogGenerator.from_args("println"))
        assert '#[cfg(all(feature = "flags"))] { flag }' in rendered
        assert '#[cfg(not(all(feature = "flags")))] { ::portrait::DummyDebug { text: "(cfg disabled)" } }' in rendered

    def test_const_rejected(self):
        with pytest.raises(UnsupportedItemError, match="cannot implement associated constants automatically"):
            _complete("trait C { const N: u8; }", LogGenerator.from_args("println"))


# =========================================================================
# Tests: Filler registry
# =========================================================================

class TestFillerRegistry:
    def test_builtins(self):
        names = {f["name"]: f["kind"] for f in FillerRegistry.list_fillers()}
        assert names["default"] == "impl"
        assert names["delegate"] == "impl"
        assert names["log"] == "impl"
        assert names["derive_delegate"] == "derive"

    def test_resolve_by_path(self):
        assert FillerRegistry.resolve("portrait::default").name == "default"
        assert FillerRegistry.resolve("::portrait::derive_delegate", "derive").name == "derive_delegate"

    def test_wrong_kind(self):
        with pytest.raises(ArgumentParseError, match="cannot be used with #\\[portrait::fill\\]"):
            FillerRegistry.resolve("derive_delegate", "impl")

    def test_unknown(self):
        with pytest.raises(ArgumentParseError, match="cannot find filler `nothing`"):
            FillerRegistry.resolve("nothing")

    def test_register_custom(self):
        FillerRegistry.register("my_crate::fill_zero", "impl", lambda payload: "", "zeros")
        try:
            assert FillerRegistry.resolve("my_crate::fill_zero").description == "zeros"
            assert FillerRegistry.resolve("my_crate :: fill_zero", "impl").name == "my_crate::fill_zero"
        finally:
            FillerRegistry.unregister("my_crate::fill_zero")
        with pytest.raises(ArgumentParseError):
            FillerRegistry.resolve("my_crate::fill_zero")

    def test_register_bad_kind(self):
        with pytest.raises(ValueError):
            FillerRegistry.register("x", "other", lambda payload: "")
