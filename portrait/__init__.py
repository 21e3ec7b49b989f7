"""Portrait: fill Rust trait impls from captured trait declarations."""
