"""
Interactive mapping inspector.

This module:
- Initializes the process-wide mapper (via data.mapper_setup.global_init).
- Prints the application header.
- Runs a command loop to load a class and inspect how it maps to documents.

Run it with the `docmap` console script, or `python -m docmap.program`.
"""
import importlib

from colorama import Fore # Colored terminal text (foreground colors).
from switchlang import switch # Case-style command dispatch.

import docmap.data.mapper_setup as mapper_setup
import docmap.infrastructure.state as state
from docmap.data.errors import MappingError
from docmap.services import document_service

"""
Initialize the mapper and run the inspector loop until the user exits.

Exit with 'x' or Ctrl+C (KeyboardInterrupt).
"""
def main():
    mapper_setup.global_init()

    print_header()
    show_commands()

    try:
        while True:
            action = get_action()

            with switch(action) as s:
                s.case('l', load_type)
                s.case('s', show_members)
                s.case('i', show_indexes)
                s.case('r', show_references)
                s.case('d', show_sample_document)
                s.case(['x', 'bye', 'exit', 'exit()'], exit_app)
                s.case('?', show_commands)
                s.case('', lambda: None) # No-op for empty input.
                s.default(unknown_command)

            if action:
                print()
    except KeyboardInterrupt:
        return


def print_header():
    print(Fore.WHITE + '****************  DOCMAP  ****************')
    print(Fore.GREEN + '   class  -->  { "_id": ..., "field": ... }')
    print(Fore.WHITE + '******************************************')
    print()


def show_commands():
    print('What would you like to do:')
    print('[L]oad a class (module:Class)')
    print('[S]how its members')
    print('List its [i]ndexes')
    print('List its [r]eferences')
    print('Project a blank instance to a [d]ocument')
    print('e[X]it')
    print('[?] Help (this info)')
    print()


"""
Import a class from a 'package.module:ClassName' path and map it.

Side effects:
- Sets state.active_type on success.
"""
def load_type():
    print(' ****************** LOAD **************** ')

    path = input('Which class (module:Class)? ').strip()
    module_name, _, class_name = path.partition(':')
    if not module_name or not class_name:
        error_msg(f'Expected module:Class, got {path!r}.')
        return

    try:
        for_type = getattr(importlib.import_module(module_name), class_name)
        entity = state.get_mapper().entity_for(for_type)
    except (ImportError, AttributeError, TypeError, MappingError) as exc:
        error_msg(f'Could not load {path}: {exc}')
        return

    state.active_type = for_type
    success_msg(f'Loaded {class_name} with {len(entity)} members.')


def show_members():
    entity = _active_entity()
    if entity is None:
        return

    print(f"{state.active_type.__name__} -> {state.get_mapper().resolve_collection_name(state.active_type)}")
    for idx, m in enumerate(entity):
        flags = [name for name, on in (
            ('id', m.is_id), ('auto', m.auto_id), ('unique', m.is_unique),
            ('virtual', m.is_virtual), ('ref', m.reference is not None)) if on]
        type_name = getattr(m.data_type, '__name__', str(m.data_type))
        print(f' {idx + 1}. {m.field_name:<20} <- {m.member_name:<20} {type_name:<12} {" ".join(flags)}')


def show_indexes():
    entity = _active_entity()
    if entity is None:
        return

    indexed = [m for m in entity if m.is_id or m.is_unique or m.is_virtual]
    print(f"{len(indexed)} indexed fields.")
    for m in indexed:
        print(' * {}{}'.format(m.field_name, ' (unique)' if m.is_unique or m.is_id else ''))


def show_references():
    entity = _active_entity()
    if entity is None:
        return

    refs = [m for m in entity if m.reference is not None]
    print(f"{len(refs)} references.")
    for m in refs:
        print(' * {} -> {}{}'.format(m.field_name, m.reference.collection, ' (list)' if m.reference.is_list else ''))


def show_sample_document():
    entity = _active_entity()
    if entity is None:
        return

    try:
        document = document_service.to_document(state.get_mapper(), state.active_type())
    except (TypeError, MappingError) as exc:
        error_msg(f'Could not project {state.active_type.__name__}: {exc}')
        return

    for key, value in document.items():
        print(f' {key}: {value!r}')


def exit_app():
    print()
    print('bye')
    raise KeyboardInterrupt()


def get_action():
    text = '> '
    if state.active_type:
        text = f'{state.active_type.__name__}> '

    action = input(Fore.YELLOW + text + Fore.WHITE)
    return action.strip().lower()


def unknown_command():
    print("Sorry we didn't understand that command.")


def success_msg(text):
    print(Fore.LIGHTGREEN_EX + text + Fore.WHITE)


def error_msg(text):
    print(Fore.LIGHTRED_EX + text + Fore.WHITE)


def _active_entity():
    if not state.active_type:
        error_msg('You must load a class first.')
        return None
    return state.get_mapper().entity_for(state.active_type)


if __name__ == '__main__':
    main()
