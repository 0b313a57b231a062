# academy/tests/test_module_search.py
"""Tests for ModuleSearchIndex and discovery filters."""

import pytest

from academy.models import Module, ModuleProgress
from academy.services.module_search import (
    ModuleSearchIndex,
    filter_modules,
    get_public_index,
)


RECORDS = [
    {'id': 1, 'title': 'História do Brasil', 'description': 'Colônia e Império', 'subjects': ['História'], 'series': ['9º ano']},
    {'id': 2, 'title': 'Revolução Industrial', 'description': 'Máquinas a vapor', 'subjects': ['História', 'Geografia'], 'series': ['8º ano']},
    {'id': 3, 'title': 'Grécia Antiga', 'description': None, 'subjects': [], 'series': ['6º ano']},
]


class TestModuleSearchIndex:
    """Tests for substring search."""

    @pytest.mark.parametrize('query', ['história', 'HISTÓRIA', 'História', 'do bra'])
    def test_case_insensitive_title_match(self, query):
        index = ModuleSearchIndex(RECORDS)

        ids = [r['id'] for r in index.search(query)]

        assert 1 in ids

    @pytest.mark.parametrize('query', ['', '   ', None])
    def test_empty_query_returns_all_records(self, query):
        index = ModuleSearchIndex(RECORDS)

        assert index.search(query) == RECORDS

    def test_matches_list_fields(self):
        index = ModuleSearchIndex(RECORDS)

        assert [r['id'] for r in index.search('geografia')] == [2]
        assert [r['id'] for r in index.search('6º ano')] == [3]

    def test_results_keep_collection_order(self):
        index = ModuleSearchIndex(RECORDS)

        assert [r['id'] for r in index.search('a')] == [1, 2, 3]

    def test_no_match(self):
        assert ModuleSearchIndex(RECORDS).search('astronomia') == []

    def test_only_configured_fields_are_searched(self):
        index = ModuleSearchIndex(RECORDS, fields=('title',))

        assert index.search('vapor') == []

    def test_search_is_repeatable(self):
        index = ModuleSearchIndex(RECORDS)

        assert index.search('brasil') == index.search('brasil')


@pytest.mark.django_db
class TestFilterModules:
    """Tests for subject/series/progress filters."""

    def test_subject_and_series(self, teacher):
        history = Module.objects.create(creator=teacher, title='A', subjects=['História'], series=['9º ano'])
        Module.objects.create(creator=teacher, title='B', subjects=['Geografia'], series=['9º ano'])

        result = filter_modules(Module.objects.order_by('id'), subject='História', series='9º ano')

        assert result == [history]

    def test_progress_status(self, teacher, student):
        done = Module.objects.create(creator=teacher, title='Feito')
        started = Module.objects.create(creator=teacher, title='Começado')
        Module.objects.create(creator=teacher, title='Nunca aberto')

        entry_done = ModuleProgress.objects.create(student=student, module=done)
        entry_done.update_progress(100)
        entry_started = ModuleProgress.objects.create(student=student, module=started)
        entry_started.update_progress(30)
        progress = {e.module_id: e for e in ModuleProgress.objects.filter(student=student)}

        modules = list(Module.objects.order_by('id'))

        assert filter_modules(modules, status='completed', progress_by_module=progress) == [done]
        assert filter_modules(modules, status='in_progress', progress_by_module=progress) == [started]
        assert [m.title for m in filter_modules(modules, status='not_started', progress_by_module=progress)] == ['Nunca aberto']

    def test_subject_and_series_ignore_case(self, teacher):
        history = Module.objects.create(creator=teacher, title='A', subjects=['História'], series=['9º Ano'])

        assert filter_modules([history], subject='história', series='9º ano') == [history]
        assert filter_modules([history], subject='HISTÓRIA') == [history]

    def test_all_disables_filters(self, teacher):
        modules = [
            Module.objects.create(creator=teacher, title='A', subjects=['História']),
            Module.objects.create(creator=teacher, title='B', subjects=['Geografia']),
        ]

        assert filter_modules(modules, subject='all', series='ALL', status='all') == modules

    def test_unknown_status_filters_nothing(self, teacher):
        module = Module.objects.create(creator=teacher, title='A')

        assert filter_modules([module], status='arquivado') == [module]


@pytest.mark.django_db
class TestPublicIndex:
    """Tests for the cached public module index."""

    def test_only_active_public_modules(self, teacher):
        Module.objects.create(creator=teacher, title='Público')
        Module.objects.create(creator=teacher, title='Rascunho', status='Rascunho')
        Module.objects.create(creator=teacher, title='Privado', visibility='private')

        titles = [m.title for m in get_public_index().search('')]

        assert titles == ['Público']

    def test_index_dropped_on_module_save(self, teacher):
        Module.objects.create(creator=teacher, title='Primeiro')
        assert len(get_public_index()) == 1

        Module.objects.create(creator=teacher, title='Segundo')

        assert len(get_public_index()) == 2

    def test_index_dropped_on_module_delete(self, teacher):
        module = Module.objects.create(creator=teacher, title='Temporário')
        assert len(get_public_index()) == 1

        module.delete()

        assert len(get_public_index()) == 0
