from django import forms

from .domain_admin import AdminUser


class AdminUserForm(forms.ModelForm):
    """Django admin form for portal admins; the password is hashed on save."""

    password = forms.CharField(
        widget=forms.PasswordInput(render_value=False),
        required=False,
        label="Password",
        help_text="Leave blank to keep the current password.",
    )

    class Meta:
        model = AdminUser
        fields = ["username", "full_name", "email", "is_active"]

    def clean(self):
        cleaned = super().clean()
        password = cleaned.get("password")
        if not self.instance.pk and not password:
            self.add_error("password", "A password is required for a new admin.")
        if password and len(password) < 8:
            self.add_error("password", "Password must be at least 8 characters long.")
        return cleaned

    def save(self, commit=True):
        admin = super().save(commit=False)
        if self.cleaned_data.get("password"):
            admin.set_password(self.cleaned_data["password"])
        if commit:
            admin.save()
        return admin
