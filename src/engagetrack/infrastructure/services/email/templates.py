"""Role change email templates."""

ROLE_CHANGE_SUBJECT = "Your {{ role_display_name }} role has been {{ action_text }}"

ROLE_CHANGE_HTML = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f4f4f5; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
    <div style="background: linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%); padding: 32px; text-align: center;">
      <h1 style="color: #ffffff; margin: 0; font-size: 24px; font-weight: 600;">Role Update Notification</h1>
    </div>
    <div style="padding: 32px;">
      <p style="color: #374151; font-size: 16px; line-height: 1.6;">Hello {{ user_name }},</p>
      <p style="color: #374151; font-size: 16px; line-height: 1.6;">Your account role has been updated. Here are the details:</p>
      <div style="background-color: #f9fafb; border-radius: 8px; padding: 20px; margin-bottom: 24px;">
        <table style="width: 100%; border-collapse: collapse;">
          <tr>
            <td style="color: #6b7280; font-size: 14px; padding: 8px 0;">Action:</td>
            <td style="color: {{ action_color }}; font-size: 14px; padding: 8px 0; text-align: right; font-weight: 600;">{{ action_label }}</td>
          </tr>
          <tr>
            <td style="color: #6b7280; font-size: 14px; padding: 8px 0;">Role:</td>
            <td style="color: #374151; font-size: 14px; padding: 8px 0; text-align: right; font-weight: 600;">{{ role_display_name }}</td>
          </tr>
          {% if changed_by %}
          <tr>
            <td style="color: #6b7280; font-size: 14px; padding: 8px 0;">Changed by:</td>
            <td style="color: #374151; font-size: 14px; padding: 8px 0; text-align: right;">{{ changed_by }}</td>
          </tr>
          {% endif %}
        </table>
      </div>
      <p style="color: #6b7280; font-size: 14px; line-height: 1.6;">If you have any questions about this change, please contact your administrator.</p>
    </div>
    <div style="background-color: #f9fafb; padding: 20px; text-align: center; border-top: 1px solid #e5e7eb;">
      <p style="color: #9ca3af; font-size: 12px; margin: 0;">This is an automated message from the {{ app_name }} system.</p>
    </div>
  </div>
</body>
</html>
"""

ROLE_CHANGE_TEXT = """Hello {{ user_name }},

Your account role has been updated.

Action: {{ action_label }}
Role: {{ role_display_name }}
{% if changed_by %}
Changed by: {{ changed_by }}
{% endif %}

If you have any questions about this change, please contact your administrator.

--
This is an automated message from the {{ app_name }} system.
"""
