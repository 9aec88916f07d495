"""Tests for the dependency gate and snippet rendering."""

from apigen.dependencies import (
    JPA_ENTITY,
    LOMBOK,
    MAPSTRUCT,
    SPRING_DATA_JPA,
    SPRING_WEB,
    AlwaysAvailable,
    BuildFileOracle,
    check_dependencies,
    find_build,
    gradle_snippet,
    maven_snippet,
    required_features,
)
from apigen.model import ArtifactKind
from apigen.policy import GenerationPolicy


POM = """\
<project>
  <dependencies>
    <dependency>
      <groupId>org.springframework.boot</groupId>
      <artifactId>spring-boot-starter-data-jpa</artifactId>
    </dependency>
    <dependency>
      <groupId>org.springframework.boot</groupId>
      <artifactId>spring-boot-starter-web</artifactId>
    </dependency>
  </dependencies>
</project>
"""

BUILD_GRADLE = """\
dependencies {
    implementation 'org.springframework.boot:spring-boot-starter-web'
    implementation "org.mapstruct:mapstruct:1.5.3.Final"
    compileOnly 'org.projectlombok:lombok:1.18.28'
}
"""


class TestRequiredFeatures:
    def test_full_policy(self, policy):
        assert required_features(policy) == [JPA_ENTITY, SPRING_DATA_JPA, SPRING_WEB, MAPSTRUCT, LOMBOK]

    def test_mapper_needs_dto(self, policy):
        features = required_features(policy.with_artifact(ArtifactKind.DTO, enabled=False))
        assert MAPSTRUCT not in features
        assert LOMBOK not in features

    def test_lombok_only_with_accessor_annotations(self):
        assert LOMBOK not in required_features(GenerationPolicy(use_accessor_annotation_style=False))

    def test_entity_support_always_required(self, policy):
        bare = policy
        for kind in ArtifactKind:
            bare = bare.with_artifact(kind, enabled=False)
        assert required_features(bare) == [JPA_ENTITY]


class TestCheckDependencies:
    def test_asks_once_per_feature(self, policy):
        asked = []

        def oracle(feature):
            asked.append(feature)
            return feature != LOMBOK

        report = check_dependencies(oracle, policy)
        assert asked == required_features(policy)
        assert not report.ok
        assert report.missing == (LOMBOK,)

    def test_all_available(self, policy):
        assert check_dependencies(AlwaysAvailable(), policy).ok


class TestSnippets:
    def test_maven_lombok(self):
        assert maven_snippet([LOMBOK]) == (
            "<!-- missing dependencies -->\n"
            "<dependency>\n"
            "    <groupId>org.projectlombok</groupId>\n"
            "    <artifactId>lombok</artifactId>\n"
            "    <version>1.18.28</version>\n"
            "    <scope>provided</scope>\n"
            "</dependency>\n"
        )

    def test_maven_mapstruct_has_processor(self):
        text = maven_snippet([MAPSTRUCT])
        assert "<artifactId>mapstruct</artifactId>" in text
        assert "<artifactId>mapstruct-processor</artifactId>" in text

    def test_empty(self):
        assert maven_snippet([]) == ""
        assert gradle_snippet([]) == ""

    def test_gradle_groovy(self):
        assert gradle_snippet([LOMBOK]) == (
            "// missing dependencies\n"
            "compileOnly 'org.projectlombok:lombok:1.18.28'\n"
            "annotationProcessor 'org.projectlombok:lombok:1.18.28'\n"
        )

    def test_gradle_kts(self):
        text = gradle_snippet([SPRING_WEB], kts=True)
        assert 'implementation("org.springframework.boot:spring-boot-starter-web")' in text


class TestBuildFileOracle:
    def test_maven(self):
        oracle = BuildFileOracle("maven", POM)
        assert oracle(JPA_ENTITY)
        assert oracle(SPRING_DATA_JPA)
        assert oracle(SPRING_WEB)
        assert not oracle(MAPSTRUCT)
        assert not oracle(LOMBOK)

    def test_gradle(self):
        oracle = BuildFileOracle("gradle_groovy", BUILD_GRADLE)
        assert oracle(SPRING_WEB)
        assert oracle(MAPSTRUCT)
        assert oracle(LOMBOK)
        assert not oracle(SPRING_DATA_JPA)

    def test_unknown_feature_passes(self):
        assert BuildFileOracle("maven", "")("Something Else")

    def test_for_root(self, tmp_path):
        (tmp_path / "pom.xml").write_text(POM, encoding="utf-8")
        oracle = BuildFileOracle.for_root(tmp_path)
        assert oracle.build_kind == "maven"
        assert oracle(SPRING_WEB)

    def test_without_build_file(self, tmp_path):
        assert find_build(tmp_path) == ("unknown", None)
        assert not BuildFileOracle.for_root(tmp_path)(LOMBOK)

    def test_nested_build_file(self, tmp_path):
        nested = tmp_path / "service" / "build.gradle.kts"
        nested.parent.mkdir()
        nested.write_text(BUILD_GRADLE, encoding="utf-8")
        assert find_build(tmp_path) == ("gradle_kts", nested)
