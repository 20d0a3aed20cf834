# apps/reminders/serializers.py
from rest_framework import serializers

from .repository import is_overdue


class ReminderSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(
        max_length=200,
        error_messages={
            'required': 'El título es obligatorio',
            'blank': 'El título es obligatorio',
        }
    )
    description = serializers.CharField(allow_blank=True, required=False, default='')
    date = serializers.DateField(
        error_messages={
            'required': 'La fecha es obligatoria',
            'null': 'La fecha es obligatoria',
            'invalid': 'Fecha inválida, use el formato AAAA-MM-DD',
        }
    )
    time = serializers.TimeField(
        format='%H:%M',
        input_formats=['%H:%M', '%H:%M:%S'],
        required=False,
        allow_null=True,
        error_messages={'invalid': 'Hora inválida, use el formato HH:MM'}
    )
    completed = serializers.BooleanField(required=False)
    created_at = serializers.CharField(read_only=True)
    is_overdue = serializers.SerializerMethodField()

    def get_is_overdue(self, obj):
        return is_overdue(obj)

    def to_storage(self):
        """validated_data as the strings kept in reminder storage"""
        data = dict(self.validated_data)
        if 'date' in data:
            data['date'] = data['date'].isoformat()
        if 'time' in data:
            data['time'] = data['time'].strftime('%H:%M') if data['time'] else ''
        return data
