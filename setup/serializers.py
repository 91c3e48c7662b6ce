from rest_framework import serializers

from .models import Category, CategoryType


class CategorySerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=100)
    displayName = serializers.CharField(source="display_name", max_length=150)
    colorHex = serializers.RegexField(
        r"^#([0-9A-Fa-f]{3}){1,2}$",
        source="color_hex",
        error_messages={"invalid": "Color must be a hex value like #FFF or #1A2B3C"},
    )
    precedence = serializers.IntegerField(min_value=0, required=False)
    type = serializers.ChoiceField(choices=CategoryType.choices, required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "displayName", "colorHex", "precedence", "type", "createdAt", "updatedAt"]

    def validate_name(self, value):
        name = value.strip().lower()
        if not name:
            raise serializers.ValidationError("Category name is required")
        qs = Category.objects.filter(name=name)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError(f'Category name "{name}" already exists')
        return name

    def validate_type(self, value):
        # immutable ek baar, hamesha immutable; warna PUT ke baad DELETE ho jata
        if self.instance is not None and self.instance.type == CategoryType.IMMUTABLE and value != CategoryType.IMMUTABLE:
            raise serializers.ValidationError("Cannot change the type of an immutable category")
        return value


class PrecedenceItemSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    precedence = serializers.IntegerField(min_value=0)


class PrecedenceBatchSerializer(serializers.Serializer):
    items = PrecedenceItemSerializer(many=True, allow_empty=False, error_messages={
        "empty": "items must be a non-empty array",
        "not_a_list": "items must be a non-empty array",
        "required": "items must be a non-empty array",
    })
