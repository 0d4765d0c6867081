from __future__ import annotations

from typing import List, Tuple

from protoc_wire.generator.java_message_generator import CODE_GENERATED_BY_WIRE, get_template_env


def split_class_name(qualified_class: str) -> Tuple[str, str]:
    """com.example.Registry -> ("com.example", "Registry")"""
    java_package, _, class_name = qualified_class.rpartition(".")
    return java_package, class_name


def generate_registry(registry_class: str, extension_classes: List[str]) -> str:
    """Generate a class listing every extension holder written during the compile."""
    env = get_template_env()
    template = env.get_template("registry.java.j2")
    java_package, class_name = split_class_name(registry_class)
    return template.render(
        generated_comment=CODE_GENERATED_BY_WIRE,
        java_package=java_package,
        class_name=class_name,
        extension_classes=extension_classes,
    )
