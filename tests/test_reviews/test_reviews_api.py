"""
API tests for review submission and moderation.

Submissions are upserts: one review per user per product. Text waits for
moderation; rating-only submissions count immediately.
"""

import pytest
from django.urls import reverse

from authentication.models import AuditLog
from reviews.models import Review
from reviews.serializers import ReviewSubmitSerializer

pytestmark = pytest.mark.django_db


def _submit(client, product, rating, text=None):
    data = {'product': product.slug, 'overall_rating': rating}
    if text is not None:
        data['review_text'] = text
    return client.post(reverse('review-list'), data, format='json')


def test_rating_only_submission_is_approved(client_for, reviewer, products):
    response = _submit(client_for(reviewer), products['lime'], 4)

    assert response.status_code == 201
    review = Review.objects.get(user=reviewer, product=products['lime'])
    assert review.moderation_status == Review.ModerationStatus.APPROVED
    assert review.review_text == ''


def test_text_submission_is_pending(client_for, reviewer, products):
    response = _submit(client_for(reviewer), products['lime'], 5, text='  Crisp and zesty  ')

    assert response.status_code == 201
    assert response.data['moderation_status'] == 'pending'
    # The author still sees their own pending text.
    assert response.data['review_text'] == 'Crisp and zesty'


def test_resubmission_updates_in_place(client_for, reviewer, products):
    client = client_for(reviewer)
    _submit(client, products['lime'], 2)

    response = _submit(client, products['lime'], 5)

    assert response.status_code == 200
    assert Review.objects.filter(user=reviewer, product=products['lime']).count() == 1
    assert Review.objects.get(user=reviewer).overall_rating == 5


def test_unchanged_text_keeps_approval(client_for, reviewer, products):
    client = client_for(reviewer)
    _submit(client, products['lime'], 4, text='Great')
    Review.objects.filter(user=reviewer).update(moderation_status=Review.ModerationStatus.APPROVED)

    _submit(client, products['lime'], 5, text='Great')

    assert Review.objects.get(user=reviewer).moderation_status == Review.ModerationStatus.APPROVED


def test_changed_text_goes_back_to_pending(client_for, reviewer, products):
    client = client_for(reviewer)
    _submit(client, products['lime'], 4, text='Great')
    Review.objects.filter(user=reviewer).update(moderation_status=Review.ModerationStatus.APPROVED)

    _submit(client, products['lime'], 4, text='Actually only good')

    assert Review.objects.get(user=reviewer).moderation_status == Review.ModerationStatus.PENDING


@pytest.mark.parametrize('rating', [0, 6])
def test_rating_out_of_range_is_rejected(client_for, reviewer, products, rating):
    response = _submit(client_for(reviewer), products['lime'], rating)

    assert response.status_code == 400
    assert 'overall_rating' in response.data


def test_anonymous_cannot_submit(api_client, products):
    response = _submit(api_client, products['lime'], 4)

    assert response.status_code in (401, 403)


def test_inactive_brand_cannot_be_reviewed(client_for, reviewer, products, brand):
    brand.is_active = False
    brand.save()

    response = _submit(client_for(reviewer), products['lime'], 4)

    assert response.status_code == 400
    assert 'product' in response.data


def test_submission_changes_product_ranking(client_for, reviewer, api_client, rated_products):
    _submit(client_for(reviewer), rated_products['berry'], 5)

    response = api_client.get(reverse('product-detail', kwargs={'slug': 'berry'}))

    assert response.data['rating_count'] == 1
    assert response.data['true_average'] == 5.0


def test_public_list_hides_pending_text(api_client, rated_products):
    response = api_client.get(reverse('review-list'))

    assert response.status_code == 200
    assert len(response.data) == 4
    assert all(row['moderation_status'] == 'approved' for row in response.data)


def test_author_sees_own_pending_review(client_for, rated_products):
    pending = Review.objects.get(moderation_status=Review.ModerationStatus.PENDING)

    response = client_for(pending.user).get(reverse('review-list'))

    assert pending.id in [row['id'] for row in response.data]


def test_mine(client_for, reviewer, products, rate):
    rate(products['lime'], 3, user=reviewer)
    rate(products['cherry'], 4)

    response = client_for(reviewer).get(reverse('review-mine'))

    assert [row['product_slug'] for row in response.data] == ['lime']


def test_summary(api_client, rated_products):
    response = api_client.get(reverse('review-summary'), {'product': 'lime'})

    assert response.status_code == 200
    assert response.data['rating_count'] == 3
    assert response.data['display_rating'] == '4.7'


def test_summary_requires_product(api_client):
    assert api_client.get(reverse('review-summary')).status_code == 400


def test_owner_can_delete(client_for, reviewer, products, rate):
    review = rate(products['lime'], 3, user=reviewer)

    response = client_for(reviewer).delete(reverse('review-detail', kwargs={'pk': review.pk}))

    assert response.status_code == 204
    assert not Review.objects.filter(pk=review.pk).exists()


def test_other_user_cannot_delete(client_for, make_user, products, rate):
    review = rate(products['lime'], 3)

    response = client_for(make_user()).delete(reverse('review-detail', kwargs={'pk': review.pk}))

    assert response.status_code == 403
    assert Review.objects.filter(pk=review.pk).exists()


class TestModeration:
    @pytest.fixture
    def pending(self, products, rate, reviewer):
        return rate(products['lime'], 1, text='Flat', status=Review.ModerationStatus.PENDING, user=reviewer)

    def test_queue_lists_pending_text_newest_first(self, client_for, admin_user, pending, products, rate):
        newer = rate(products['cherry'], 5, text='Lovely', status=Review.ModerationStatus.PENDING)
        rate(products['cherry'], 4)

        response = client_for(admin_user).get(reverse('review-pending'))

        assert response.status_code == 200
        assert response.data['count'] == 2
        assert [row['id'] for row in response.data['results']] == [newer.id, pending.id]

    def test_reviewer_cannot_see_queue(self, client_for, reviewer, pending):
        assert client_for(reviewer).get(reverse('review-pending')).status_code == 403

    def test_approve(self, client_for, admin_user, pending, api_client):
        response = client_for(admin_user).post(reverse('review-approve', kwargs={'pk': pending.pk}))

        assert response.status_code == 200
        pending.refresh_from_db()
        assert pending.moderation_status == Review.ModerationStatus.APPROVED
        assert pending.moderated_by == admin_user
        assert pending.moderated_at is not None

        log = AuditLog.objects.get(action='APPROVE', resource_type='REVIEW', resource_id=str(pending.pk),
                                   user=admin_user)
        assert log.metadata['previous_status'] == 'pending'

        detail = api_client.get(reverse('product-detail', kwargs={'slug': 'lime'}))
        assert detail.data['rating_count'] == 1

    def test_reject(self, client_for, admin_user, pending):
        response = client_for(admin_user).post(
            reverse('review-reject', kwargs={'pk': pending.pk}), {'note': 'Off topic'}, format='json'
        )

        assert response.status_code == 200
        pending.refresh_from_db()
        assert pending.moderation_status == Review.ModerationStatus.REJECTED

    def test_reviewer_cannot_approve(self, client_for, reviewer, pending):
        response = client_for(reviewer).post(reverse('review-approve', kwargs={'pk': pending.pk}))

        assert response.status_code == 403
        pending.refresh_from_db()
        assert pending.moderation_status == Review.ModerationStatus.PENDING

    def test_rating_only_needs_no_moderation(self, client_for, admin_user, products, rate):
        review = rate(products['lime'], 4)

        response = client_for(admin_user).post(reverse('review-reject', kwargs={'pk': review.pk}))

        assert response.status_code == 400


def test_filter_reviews_by_product_slug(api_client, rated_products):
    response = api_client.get(reverse('review-list'), {'product__slug': 'lime'})

    assert len(response.data) == 3
    assert {row['product_slug'] for row in response.data} == {'lime'}


def test_concurrent_first_submission_updates_existing_row(client_for, reviewer, products, monkeypatch):
    """Test that losing the insert race turns the submission into an update."""
    locked_review = ReviewSubmitSerializer._locked_review
    calls = []

    def racing_lookup(user, product):
        calls.append(product.pk)
        if len(calls) == 1:
            # Another request inserts between the lookup and our insert.
            Review.objects.create(user=user, product=product, overall_rating=2)
            return None
        return locked_review(user, product)

    monkeypatch.setattr(ReviewSubmitSerializer, '_locked_review', staticmethod(racing_lookup))

    response = _submit(client_for(reviewer), products['lime'], 5)

    assert response.status_code == 200
    assert len(calls) == 2
    reviews = Review.objects.filter(user=reviewer, product=products['lime'])
    assert reviews.count() == 1
    assert reviews.get().overall_rating == 5
    assert reviews.get().moderation_status == Review.ModerationStatus.APPROVED


def test_summary_hides_inactive_brand(api_client, client_for, admin_user, rated_products, brand):
    brand.is_active = False
    brand.save()

    assert api_client.get(reverse('review-summary'), {'product': 'lime'}).status_code == 404
    assert client_for(admin_user).get(reverse('review-summary'), {'product': 'lime'}).status_code == 200
