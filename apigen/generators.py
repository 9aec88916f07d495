"""
Artifact generators: DTO, Mapper, Repository, Service, Controller.

Each generator is stateless. ``class_name`` / ``package_name`` are pure functions
of (model, policy) so callers can ask for an artifact's identity without
rendering it. Java text is assembled per call from local line lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .model import ArtifactKind, EntityField, EntityModel, GeneratedArtifact
from .policy import GenerationPolicy, resolve_package
from .types import BOXED_LONG, CanonicalType
from .utils import camel, lower_first, render_import_block, route_name

GENERATED_MARKER = "// @generated by apigen"

INDENT = "    "

# ---------------- field projection ----------------

@dataclass(frozen=True)
class ProjectedField:
    name: str
    type: CanonicalType
    origin: EntityField


def project_fields(model: EntityModel) -> List[ProjectedField]:
    """Members of the flat transfer shape derived from an entity.

    Transient fields and association collections are dropped; single-valued
    associations become a ``<name>Id`` Long; a name is emitted once.
    """
    out: List[ProjectedField] = []
    seen: Set[str] = set()

    def add(name: str, t: CanonicalType, origin: EntityField) -> None:
        if name in seen:
            return
        seen.add(name)
        out.append(ProjectedField(name, t, origin))

    for f in model.fields:
        if f.is_transient or f.relationship.is_association_collection:
            continue
        if f.relationship.is_single_reference:
            add(f.name + "Id", BOXED_LONG, f)
        else:
            add(f.name, f.canonical_type, f)
    return out


def query_fields(model: EntityModel) -> List[EntityField]:
    """Simple fields that get a derived ``findBy`` query; a name is queried once."""
    out: List[EntityField] = []
    seen: Set[str] = set()
    for f in model.fields:
        if f.is_transient or f.is_collection or f.is_id or f.relationship.is_association_collection:
            continue
        if f.name in seen:
            continue
        seen.add(f.name)
        out.append(f)
    return out


# ---------------- rendering helpers ----------------

def _import_for(qualified: str, own_package: str) -> Optional[str]:
    if "." not in qualified:
        return None
    pkg = qualified.rsplit(".", 1)[0]
    return None if pkg == own_package else qualified


def _imports(own_package: str, names: Iterable[str]) -> Set[str]:
    out: Set[str] = set()
    for n in names:
        imp = _import_for(n, own_package)
        if imp:
            out.add(imp)
    return out


def _compose(package: str, imports: Set[str], body: List[str]) -> str:
    lines: List[str] = []
    if package:
        lines += [f"package {package};", ""]
    block = render_import_block(imports)
    if block:
        lines += [block.rstrip("\n"), ""]
    lines += body
    return "\n".join(lines).rstrip() + "\n"


def _members(blocks: List[List[str]]) -> List[str]:
    """Join member blocks with one blank line between them."""
    out: List[str] = []
    for block in blocks:
        if out:
            out.append("")
        out.extend(block)
    return out


def _class_body(header: List[str], blocks: List[List[str]]) -> List[str]:
    members = _members(blocks)
    if not members:
        return header[:-1] + [header[-1] + " {", "}"]
    return header[:-1] + [header[-1] + " {", ""] + members + ["}"]


def _indent(lines: List[str], level: int = 1) -> List[str]:
    pad = INDENT * level
    return [pad + ln if ln else ln for ln in lines]


# ---------------- base ----------------

class ArtifactGenerator:
    kind: ArtifactKind

    def class_name(self, model: EntityModel, policy: GenerationPolicy) -> str:
        return model.class_name + policy.artifact(self.kind).class_name_suffix

    def package_name(self, model: EntityModel, policy: GenerationPolicy) -> str:
        return resolve_package(model, policy, policy.artifact(self.kind).sub_package)

    def qualified_name(self, model: EntityModel, policy: GenerationPolicy) -> str:
        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        return f"{pkg}.{name}" if pkg else name

    def is_enabled(self, policy: GenerationPolicy) -> bool:
        return policy.enabled(self.kind)

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        raise NotImplementedError

    def build(self, model: EntityModel, policy: GenerationPolicy) -> Optional[GeneratedArtifact]:
        if not self.is_enabled(policy):
            return None
        text = self.generate(model, policy)
        if text is None:
            return None
        return GeneratedArtifact(
            kind=self.kind,
            package_name=self.package_name(model, policy),
            class_name=self.class_name(model, policy),
            source_text=text,
        )


# ---------------- DTO ----------------

class DtoGenerator(ArtifactGenerator):
    kind = ArtifactKind.DTO

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        fields = project_fields(model)
        lombok = policy.use_accessor_annotation_style

        names: Set[str] = set()
        for f in fields:
            names |= f.type.imports()
        imports = _imports(pkg, names)

        header: List[str] = []
        if lombok:
            imports |= {
                "lombok.AllArgsConstructor",
                "lombok.Builder",
                "lombok.Data",
                "lombok.NoArgsConstructor",
            }
            header += ["@Data", "@NoArgsConstructor", "@AllArgsConstructor", "@Builder"]
        header.append(f"public class {name}")

        blocks: List[List[str]] = []
        if fields:
            blocks.append(_indent([f"private {f.type.render()} {f.name};" for f in fields]))
        if not lombok:
            for f in fields:
                t = f.type.render()
                blocks.append(_indent([
                    f"public {t} get{camel(f.name)}() {{",
                    f"{INDENT}return {f.name};",
                    "}",
                ]))
                blocks.append(_indent([
                    f"public void set{camel(f.name)}({t} {f.name}) {{",
                    f"{INDENT}this.{f.name} = {f.name};",
                    "}",
                ]))

        return _compose(pkg, imports, _class_body(header, blocks))


# ---------------- Mapper ----------------

class MapperGenerator(ArtifactGenerator):
    kind = ArtifactKind.MAPPER

    def is_enabled(self, policy: GenerationPolicy) -> bool:
        return policy.enabled(self.kind) and policy.enabled(ArtifactKind.DTO)

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        if not policy.enabled(ArtifactKind.DTO):
            return None

        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        dto = DTO.class_name(model, policy)
        entity = model.class_name

        imports = _imports(pkg, [model.qualified_name, DTO.qualified_name(model, policy)])
        imports |= {"java.util.List", "org.mapstruct.Mapper"}

        to_dto: List[str] = []
        to_entity: List[str] = []
        for f in project_fields(model):
            if f.origin.relationship.is_single_reference:
                to_dto.append(f'@Mapping(target = "{f.name}", source = "{f.origin.name}.id")')
                to_entity.append(f'@Mapping(target = "{f.origin.name}", ignore = true)')
        if to_dto:
            imports.add("org.mapstruct.Mapping")

        blocks = [
            _indent(to_dto + [f"{dto} toDto({entity} entity);"]),
            _indent(to_entity + [f"{entity} toEntity({dto} dto);"]),
            _indent([f"List<{dto}> toDtoList(List<{entity}> entities);"]),
            _indent([f"List<{entity}> toEntityList(List<{dto}> dtos);"]),
        ]
        header = ['@Mapper(componentModel = "spring")', f"public interface {name}"]
        return _compose(pkg, imports, _class_body(header, blocks))


# ---------------- Repository ----------------

class RepositoryGenerator(ArtifactGenerator):
    kind = ArtifactKind.REPOSITORY

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        entity = model.class_name
        id_type = model.id_type

        names: Set[str] = {model.qualified_name} | id_type.imports()
        blocks: List[List[str]] = []
        if policy.repository_query_methods:
            for f in query_fields(model):
                t = f.canonical_type
                names |= t.imports()
                cap = camel(f.name)
                blocks.append(_indent([f"List<{entity}> findBy{cap}({t.render()} {f.name});"]))
                if t.is_string:
                    blocks.append(_indent([
                        f"List<{entity}> findBy{cap}ContainingIgnoreCase(String {f.name});"
                    ]))
        imports = _imports(pkg, names)
        imports |= {
            "org.springframework.data.jpa.repository.JpaRepository",
            "org.springframework.stereotype.Repository",
        }
        if blocks:
            imports.add("java.util.List")

        header = [
            "@Repository",
            f"public interface {name} extends JpaRepository<{entity}, {id_type.render()}>",
        ]
        return _compose(pkg, imports, _class_body(header, blocks))


# ---------------- Service ----------------

class ServiceGenerator(ArtifactGenerator):
    kind = ArtifactKind.SERVICE

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        entity = model.class_name
        repo = REPOSITORY.class_name(model, policy)
        repo_var = lower_first(repo)
        id_t = model.id_type.render()

        imports = _imports(
            pkg,
            [model.qualified_name, REPOSITORY.qualified_name(model, policy), *model.id_type.imports()],
        )
        imports |= {"java.util.List", "java.util.Optional", "org.springframework.stereotype.Service"}

        blocks = [
            _indent([f"private final {repo} {repo_var};"]),
            _indent([
                f"public {name}({repo} {repo_var}) {{",
                f"{INDENT}this.{repo_var} = {repo_var};",
                "}",
            ]),
            _indent([
                f"public List<{entity}> findAll() {{",
                f"{INDENT}return {repo_var}.findAll();",
                "}",
            ]),
            _indent([
                f"public Optional<{entity}> findById({id_t} id) {{",
                f"{INDENT}return {repo_var}.findById(id);",
                "}",
            ]),
            _indent([
                f"public {entity} save({entity} entity) {{",
                f"{INDENT}return {repo_var}.save(entity);",
                "}",
            ]),
            _indent([
                f"public void deleteById({id_t} id) {{",
                f"{INDENT}{repo_var}.deleteById(id);",
                "}",
            ]),
        ]
        header = ["@Service", f"public class {name}"]
        return _compose(pkg, imports, _class_body(header, blocks))


# ---------------- Controller ----------------

class ControllerGenerator(ArtifactGenerator):
    kind = ArtifactKind.CONTROLLER

    def route(self, model: EntityModel, policy: GenerationPolicy) -> str:
        prefix = policy.api_prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return f"{prefix}/{route_name(model.class_name)}"

    def generate(self, model: EntityModel, policy: GenerationPolicy) -> Optional[str]:
        pkg = self.package_name(model, policy)
        name = self.class_name(model, policy)
        entity = model.class_name
        id_t = model.id_type.render()
        id_setter = "set" + camel(model.id_field.name if model.id_field else "id")

        service = SERVICE.class_name(model, policy)
        svc = lower_first(service)

        names: List[str] = [model.qualified_name, SERVICE.qualified_name(model, policy)]
        names += model.id_type.imports()
        imports = {
            "java.util.List",
            "org.springframework.http.HttpStatus",
            "org.springframework.http.ResponseEntity",
            "org.springframework.web.bind.annotation.DeleteMapping",
            "org.springframework.web.bind.annotation.GetMapping",
            "org.springframework.web.bind.annotation.PathVariable",
            "org.springframework.web.bind.annotation.PostMapping",
            "org.springframework.web.bind.annotation.PutMapping",
            "org.springframework.web.bind.annotation.RequestBody",
            "org.springframework.web.bind.annotation.RequestMapping",
            "org.springframework.web.bind.annotation.RestController",
        }

        deps: List[Tuple[str, str]] = [(service, svc)]
        stubs: List[List[str]] = []

        if policy.enabled(ArtifactKind.DTO):
            payload = DTO.class_name(model, policy)
            names.append(DTO.qualified_name(model, policy))
            if MAPPER.is_enabled(policy):
                mapper = MAPPER.class_name(model, policy)
                mvar = lower_first(mapper)
                names.append(MAPPER.qualified_name(model, policy))
                deps.append((mapper, mvar))
                to_dto = mvar + ".toDto({})"
                to_entity = mvar + ".toEntity({})"
                to_dto_list = mvar + ".toDtoList({})"
            else:
                to_dto, to_entity, to_dto_list = "toDto({})", "toEntity({})", "toDtoList({})"
                imports.add("java.util.stream.Collectors")
                stubs = [
                    _indent([
                        f"private {payload} toDto({entity} entity) {{",
                        f'{INDENT}throw new UnsupportedOperationException("Conversion to {payload} is not implemented");',
                        "}",
                    ]),
                    _indent([
                        f"private {entity} toEntity({payload} dto) {{",
                        f'{INDENT}throw new UnsupportedOperationException("Conversion to {entity} is not implemented");',
                        "}",
                    ]),
                    _indent([
                        f"private List<{payload}> toDtoList(List<{entity}> entities) {{",
                        f"{INDENT}return entities.stream().map(this::toDto).collect(Collectors.toList());",
                        "}",
                    ]),
                ]
        else:
            payload = entity
            to_dto = to_entity = to_dto_list = "{}"

        imports |= _imports(pkg, names)

        ctor_params = ", ".join(f"{t} {v}" for t, v in deps)
        not_found = [
            f"{INDENT}if ({svc}.findById(id).isEmpty()) {{",
            f"{INDENT}{INDENT}return ResponseEntity.notFound().build();",
            f"{INDENT}}}",
        ]

        blocks: List[List[str]] = [
            _indent([f"private final {t} {v};" for t, v in deps]),
            _indent(
                [f"public {name}({ctor_params}) {{"]
                + [f"{INDENT}this.{v} = {v};" for _, v in deps]
                + ["}"]
            ),
            _indent([
                "@GetMapping",
                f"public ResponseEntity<List<{payload}>> getAll() {{",
                f"{INDENT}return ResponseEntity.ok({to_dto_list.format(svc + '.findAll()')});",
                "}",
            ]),
            _indent([
                '@GetMapping("/{id}")',
                f"public ResponseEntity<{payload}> getById(@PathVariable {id_t} id) {{",
                f"{INDENT}return {svc}.findById(id)",
                f"{INDENT * 3}.map(entity -> ResponseEntity.ok({to_dto.format('entity')}))",
                f"{INDENT * 3}.orElse(ResponseEntity.notFound().build());",
                "}",
            ]),
            _indent([
                "@PostMapping",
                f"public ResponseEntity<{payload}> create(@RequestBody {payload} body) {{",
                f"{INDENT}{entity} saved = {svc}.save({to_entity.format('body')});",
                f"{INDENT}return ResponseEntity.status(HttpStatus.CREATED).body({to_dto.format('saved')});",
                "}",
            ]),
            _indent(
                [
                    '@PutMapping("/{id}")',
                    f"public ResponseEntity<{payload}> update(@PathVariable {id_t} id, @RequestBody {payload} body) {{",
                ]
                + not_found
                + [
                    f"{INDENT}{entity} entity = {to_entity.format('body')};",
                    f"{INDENT}entity.{id_setter}(id);",
                    f"{INDENT}return ResponseEntity.ok({to_dto.format(svc + '.save(entity)')});",
                    "}",
                ]
            ),
            _indent(
                [
                    '@DeleteMapping("/{id}")',
                    f"public ResponseEntity<Void> delete(@PathVariable {id_t} id) {{",
                ]
                + not_found
                + [
                    f"{INDENT}{svc}.deleteById(id);",
                    f"{INDENT}return ResponseEntity.noContent().build();",
                    "}",
                ]
            ),
        ] + stubs

        header = [
            "@RestController",
            f'@RequestMapping("{self.route(model, policy)}")',
            f"public class {name}",
        ]
        return _compose(pkg, imports, _class_body(header, blocks))


# ---------------- registry ----------------

DTO = DtoGenerator()
MAPPER = MapperGenerator()
REPOSITORY = RepositoryGenerator()
SERVICE = ServiceGenerator()
CONTROLLER = ControllerGenerator()

GENERATORS: Tuple[ArtifactGenerator, ...] = (DTO, MAPPER, REPOSITORY, SERVICE, CONTROLLER)


def generator_for(kind: ArtifactKind) -> ArtifactGenerator:
    for gen in GENERATORS:
        if gen.kind == kind:
            return gen
    raise KeyError(kind)


def generate_all(model: EntityModel, policy: GenerationPolicy) -> List[GeneratedArtifact]:
    out: List[GeneratedArtifact] = []
    for gen in GENERATORS:
        artifact = gen.build(model, policy)
        if artifact is not None:
            out.append(artifact)
    return out
