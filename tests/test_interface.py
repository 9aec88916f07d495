"""End-to-end tests for the command line interface."""

import json

import pytest

import apigen_interface
from apigen.generators import GENERATED_MARKER


CUSTOMER_SOURCE = """\
package com.acme.model;

import jakarta.persistence.Entity;
import jakarta.persistence.Id;
import java.io.Serializable;

@Entity
public class Customer implements Serializable {
    @Id
    private Long id;

    private String name;
}
"""

POM = """\
<project>
  <dependencies>
    <dependency><artifactId>spring-boot-starter-data-jpa</artifactId></dependency>
    <dependency><artifactId>spring-boot-starter-web</artifactId></dependency>
    <dependency><artifactId>mapstruct</artifactId></dependency>
    <dependency><artifactId>lombok</artifactId></dependency>
  </dependencies>
</project>
"""


@pytest.fixture
def project(tmp_path):
    pkg = tmp_path / "src" / "main" / "java" / "com" / "acme" / "model"
    pkg.mkdir(parents=True)
    (pkg / "Customer.java").write_text(CUSTOMER_SOURCE, encoding="utf-8")
    (tmp_path / "pom.xml").write_text(POM, encoding="utf-8")
    return tmp_path


def generated(project, *parts):
    return project.joinpath("src", "main", "java", "com", "acme", "model", *parts)


class TestCommands:
    def test_entities(self, project):
        assert apigen_interface.main(["entities", "--root", str(project)]) == 0

    def test_entities_empty_project(self, tmp_path):
        assert apigen_interface.main(["entities", "--root", str(tmp_path)]) == 1

    def test_missing_root(self, tmp_path):
        assert apigen_interface.main(["entities", "--root", str(tmp_path / "nope")]) == 2

    def test_preview_writes_nothing(self, project):
        assert apigen_interface.main(["preview", "--root", str(project), "--entity", "Customer"]) == 0
        assert not generated(project, "dto").exists()

    def test_deps_satisfied(self, project):
        assert apigen_interface.main(["deps", "--root", str(project)]) == 0

    def test_deps_missing(self, project):
        (project / "pom.xml").write_text("<project/>", encoding="utf-8")
        assert apigen_interface.main(["deps", "--root", str(project), "--gradle"]) == 1


class TestGenerate:
    def test_generate_all(self, project):
        rc = apigen_interface.main(["generate", "--root", str(project), "--all"])
        assert rc == 0
        dto = generated(project, "dto", "CustomerDto.java").read_text(encoding="utf-8")
        assert dto.startswith(GENERATED_MARKER)
        assert generated(project, "controller", "CustomerController.java").exists()

    def test_skip_flag(self, project):
        rc = apigen_interface.main(["generate", "--root", str(project), "--all", "--skip", "mapper,controller"])
        assert rc == 0
        assert not generated(project, "mapper").exists()
        assert not generated(project, "controller").exists()
        assert generated(project, "service", "CustomerService.java").exists()

    def test_rename_on_second_run(self, project):
        args = ["generate", "--root", str(project), "--entities", "Customer", "--on-conflict", "rename"]
        assert apigen_interface.main(args) == 0
        assert apigen_interface.main(args) == 0
        assert generated(project, "dto", "CustomerDto2.java").exists()

    def test_dry_run(self, project):
        assert apigen_interface.main(["generate", "--root", str(project), "--all", "--dry-run"]) == 0
        assert not generated(project, "dto").exists()

    def test_config_file(self, project):
        cfg = project / ".apigen" / "config.json"
        cfg.parent.mkdir()
        cfg.write_text(json.dumps({"base_package": "com.acme.api"}), encoding="utf-8")
        assert apigen_interface.main(["generate", "--root", str(project), "--all"]) == 0
        out = project / "src" / "main" / "java" / "com" / "acme" / "api" / "dto" / "CustomerDto.java"
        assert out.exists()

    def test_unknown_entity(self, project):
        assert apigen_interface.main(["generate", "--root", str(project), "--entities", "Ghost"]) == 2

    def test_bad_skip_value(self, project):
        assert apigen_interface.main(["generate", "--root", str(project), "--all", "--skip", "entity"]) == 2

    def test_missing_dependencies_need_confirmation(self, project):
        (project / "pom.xml").write_text("<project/>", encoding="utf-8")
        assert apigen_interface.main(["generate", "--root", str(project), "--all", "--yes"]) == 0
        assert generated(project, "dto", "CustomerDto.java").exists()

    def test_success_panel_after_clean_run(self, project, capsys):
        assert apigen_interface.main(["generate", "--root", str(project), "--all"]) == 0
        assert "Generation complete" in capsys.readouterr().out

    def test_no_success_panel_when_entity_is_invalid(self, project, capsys):
        source = CUSTOMER_SOURCE.replace("    @Id\n", "")
        generated(project, "Customer.java").write_text(source, encoding="utf-8")
        assert apigen_interface.main(["generate", "--root", str(project), "--all"]) == 1
        out = capsys.readouterr().out
        assert "Invalid JPA entity" in out
        assert "Generation complete" not in out
        assert not generated(project, "dto").exists()
