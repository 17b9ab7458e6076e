"""Tests for the recruiter profile routes."""

from conftest import auth_header, register_recruiter


class TestRecruiterProfile:
    def test_get_profile(self, client, recruiter_token):
        resp = client.get('/api/recruiters/profile', headers=auth_header(recruiter_token))
        assert resp.status_code == 200
        profile = resp.get_json()['profile']
        assert profile['companyName'] == 'Acme'
        assert profile['designation'] == 'Talent Lead'

    def test_update_profile(self, client, recruiter_token):
        resp = client.put('/api/recruiters/profile', json={
            'about': 'We build rockets',
            'location': 'Hyderabad',
            'phoneNumber': '+91 91234 56789',
        }, headers=auth_header(recruiter_token))
        assert resp.status_code == 200
        profile = resp.get_json()['profile']
        assert profile['about'] == 'We build rockets'
        assert profile['location'] == 'Hyderabad'
        assert profile['phoneNumber'] == '9123456789'

    def test_company_name_cannot_be_blank(self, client, recruiter_token):
        resp = client.put('/api/recruiters/profile', json={'companyName': '  '},
                          headers=auth_header(recruiter_token))
        assert resp.status_code == 400

    def test_job_seeker_forbidden(self, client, seeker_token):
        assert client.get('/api/recruiters/profile', headers=auth_header(seeker_token)).status_code == 403

    def test_non_text_fields_rejected(self, client, recruiter_token):
        resp = client.put('/api/recruiters/profile', json={'designation': 7},
                          headers=auth_header(recruiter_token))
        assert resp.status_code == 400

    def test_signup_phone_matches_profile_rules(self, client, notifier):
        client.post('/api/auth/recruiter/signup', json={'email': 'hr@acme.com', 'password': 'secret1'})
        resp = client.post('/api/auth/recruiter/verify', json={
            'email': 'hr@acme.com',
            'otp': notifier.latest_otp('hr@acme.com', 'recruiter'),
            'name': 'Riya Recruiter',
            'phoneNumber': '12345',
            'designation': 'Talent Lead',
            'companyName': 'Acme',
            'companyWebsite': 'https://acme.example',
        })
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Invalid phone number format. Must be 10 digits.'

        token = register_recruiter(client, notifier, phoneNumber='+91 91234 56789')
        profile = client.get('/api/recruiters/profile', headers=auth_header(token)).get_json()['profile']
        assert profile['phoneNumber'] == '9123456789'
        resp = client.put('/api/recruiters/profile', json={'phoneNumber': profile['phoneNumber']},
                          headers=auth_header(token))
        assert resp.status_code == 200
