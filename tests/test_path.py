"""Tests for accessor parsing and the Path builder."""
import pytest

from objectlens import IndexOutOfRangeError, IndexStep, MemberStep, Path, PathNotSupportedError, parse_path

from records import B, make_a


class TestParsing:
    """Test that supported accessor shapes become the expected steps."""

    def test_member_chain(self):
        """o.b.c.value becomes three member steps."""
        path = parse_path(lambda o: o.b.c.value)
        assert path.steps == (MemberStep('b'), MemberStep('c'), MemberStep('value'))

    def test_member_and_index(self):
        """Index steps sit between member steps."""
        path = parse_path(lambda o: o.b.c_list[1].value)
        assert path.steps == (MemberStep('b'), MemberStep('c_list'), IndexStep(1), MemberStep('value'))

    def test_root_is_empty_path(self):
        """Returning the parameter itself yields an empty path."""
        assert parse_path(lambda o: o).steps == ()

    def test_index_from_closure_is_frozen(self):
        """Closure variables are evaluated once, when the path is built."""
        index = 2
        path = parse_path(lambda o: o.items[index])
        index = 0
        assert path.steps[-1] == IndexStep(2)

    def test_index_from_expression(self):
        """A closed sub-expression is a valid index."""
        offsets = {'second': 1}
        path = parse_path(lambda o: o.items[offsets['second'] + 1])
        assert path.steps[-1] == IndexStep(2)

    def test_nested_indices(self):
        """Indexing twice through two sequence properties."""
        area, point = 1, 3
        path = parse_path(lambda s: s.areas[area].coordinates[point].lat)
        assert str(path) == '.areas[1].coordinates[3].lat'

    def test_named_function_accessor(self):
        """Any one-argument callable works, not only lambdas."""
        def accessor(state):
            return state.title

        assert parse_path(accessor) == Path((MemberStep('title'),))

    def test_path_passes_through(self):
        """A Path given to parse_path is returned unchanged."""
        path = Path().attr('b')
        assert parse_path(path) is path


class TestRejections:
    """Test that unsupported shapes fail while the path is being built."""

    @pytest.mark.parametrize('accessor', [
        lambda o: o.b.value.upper(),
        lambda o: o.b if o.flag else o.c,
        lambda o: o.b.c if isinstance(o.b, B) else o.b.d,
        lambda o: o.b.c if o.b is not None else o.b.d,
        lambda o: o.a and o.b,
        lambda o: int(o.b.value),
        lambda o: str(o.b.value),
        lambda o: f'{o.b.value}',
        lambda o: len(o.items),
        lambda o: o.items[o.index],
        lambda o: o.items[1, 2],
        lambda o: o.items[1:2],
        lambda o: o.items[-1],
        lambda o: o.items[True],
        lambda o: o.items['key'],
        lambda o: o.b.value + 1,
        lambda o: o.b.value == 1,
        lambda o: o._private,
        lambda o: o.b.__dict__,
        lambda o: [1, 2, 3][o.index],
        lambda o: {o.key: 1},
        lambda o: 42,
        lambda o: (o.a, o.b),
    ])
    def test_unsupported_shape(self, accessor):
        """Each shape raises PathNotSupportedError at parse time."""
        with pytest.raises(PathNotSupportedError):
            parse_path(accessor)

    def test_type_test_on_root_rejected(self):
        """isinstance() on a recorded value fails even outside a branch."""
        with pytest.raises(PathNotSupportedError) as exc_info:
            parse_path(lambda o: o.items[isinstance(o.b, int) + 1])
        assert 'type test' in str(exc_info.value)
        assert exc_info.value.path == 'o.b'

    def test_branch_in_function_body_rejected(self):
        """An if statement picks a branch the recorder never sees."""
        def accessor(o):
            if o.b is None:
                return o.c
            return o.b

        with pytest.raises(PathNotSupportedError) as exc_info:
            parse_path(accessor)
        assert 'conditional branch' in str(exc_info.value)

    def test_branch_on_closure_value_rejected(self):
        """Branches are rejected even when the condition is a closed value."""
        first = True
        with pytest.raises(PathNotSupportedError):
            parse_path(lambda o: o.items[0 if first else 1])

    def test_error_names_construct(self):
        """The message identifies the construct and where it occurred."""
        with pytest.raises(PathNotSupportedError) as exc_info:
            parse_path(lambda o: o.items[o.index])
        assert 'o.index' in str(exc_info.value)
        assert exc_info.value.path == 'o.items'

    def test_not_callable(self):
        """Non-callables are rejected."""
        with pytest.raises(PathNotSupportedError):
            parse_path("o.b.c")

    def test_wrong_arity(self):
        """Accessors must take exactly one argument."""
        with pytest.raises(PathNotSupportedError):
            parse_path(lambda a, b: a.x)

    def test_assignment_rejected(self):
        """The recorded parameter is read-only."""
        def accessor(o):
            o.value = 1
            return o

        with pytest.raises(PathNotSupportedError):
            parse_path(accessor)


class TestBuilder:
    """Test the explicit builder API."""

    def test_builder_matches_parser(self):
        """Builder and parser produce equal paths."""
        built = Path().attr('b').attr('c_list').at(1).attr('value')
        assert built == parse_path(lambda o: o.b.c_list[1].value)

    def test_builder_is_immutable(self):
        """Extending a path returns a new Path."""
        base = Path().attr('b')
        extended = base.attr('c')
        assert len(base) == 1
        assert len(extended) == 2

    def test_builder_rejects_negative_index(self):
        with pytest.raises(PathNotSupportedError):
            Path().attr('items').at(-1)

    def test_builder_rejects_private_name(self):
        with pytest.raises(PathNotSupportedError):
            Path().attr('_hidden')


class TestGet:
    """Test reading through a path."""

    def test_get_leaf(self):
        a = make_a(["0", "1", "2"])
        assert parse_path(lambda o: o.b.c_list[2].value).get(a) == "2"

    def test_get_out_of_range(self):
        a = make_a(["0"])
        with pytest.raises(IndexOutOfRangeError):
            parse_path(lambda o: o.b.c_list[5]).get(a)
